"""Static airport → IANA timezone reference data used by the trip resolver."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

import pandas as pd


# Must match the timezone lookup used by the app that publishes the legs.
# The resolver prefers this table over the timezone carried on each leg.
_AIRPORT_TIME_ZONES: Dict[str, str] = {
    # Eastern Time (EST/EDT)
    "ATL": "America/New_York",
    "BOS": "America/New_York",
    "BWI": "America/New_York",
    "CHS": "America/New_York",
    "CLT": "America/New_York",
    "CMH": "America/New_York",
    "CVG": "America/New_York",
    "DCA": "America/New_York",
    "DTW": "America/New_York",
    "EWR": "America/New_York",
    "FLL": "America/New_York",
    "FWA": "America/New_York",
    "IAD": "America/New_York",
    "IND": "America/New_York",
    "JFK": "America/New_York",
    "LGA": "America/New_York",
    "MCO": "America/New_York",
    "MIA": "America/New_York",
    "ORF": "America/New_York",
    "PBI": "America/New_York",
    "PHL": "America/New_York",
    "PIT": "America/New_York",
    "PVD": "America/New_York",
    "RDU": "America/New_York",
    "RIC": "America/New_York",
    "ROC": "America/New_York",
    "RSW": "America/New_York",
    "SBN": "America/New_York",
    "SDF": "America/New_York",
    "GATC": "America/New_York",
    "SRQ": "America/New_York",
    "SYR": "America/New_York",
    "TPA": "America/New_York",
    "BDL": "America/New_York",
    "BUF": "America/New_York",
    "CAE": "America/New_York",
    "CLE": "America/New_York",
    "DAY": "America/New_York",
    "GRR": "America/New_York",
    "GSO": "America/New_York",
    "GSP": "America/New_York",
    "JAX": "America/New_York",
    "LEX": "America/New_York",
    "MHT": "America/New_York",
    "ORH": "America/New_York",
    "PWM": "America/New_York",
    "SAV": "America/New_York",
    "TYS": "America/New_York",
    "ACY": "America/New_York",
    "AGS": "America/New_York",
    "ABY": "America/New_York",
    "ALB": "America/New_York",
    "AVL": "America/New_York",
    "AZO": "America/New_York",
    "BGR": "America/New_York",
    "BGM": "America/New_York",
    "CHA": "America/New_York",
    "CHO": "America/New_York",
    "CRW": "America/New_York",
    "FNT": "America/New_York",
    "GNV": "America/New_York",
    "HPN": "America/New_York",
    "ILM": "America/New_York",
    "ISO": "America/New_York",
    "LAN": "America/New_York",
    "MBS": "America/New_York",
    "MDT": "America/New_York",
    "MLB": "America/New_York",
    "PHF": "America/New_York",
    "TLH": "America/New_York",
    "TOL": "America/New_York",
    "TRI": "America/New_York",

    # Central Time (CST/CDT)
    "AUS": "America/Chicago",
    "BNA": "America/Chicago",
    "DAL": "America/Chicago",
    "DFW": "America/Chicago",
    "DSM": "America/Chicago",
    "GYY": "America/Chicago",
    "HOU": "America/Chicago",
    "IAH": "America/Chicago",
    "JAN": "America/Chicago",
    "MCI": "America/Chicago",
    "MDW": "America/Chicago",
    "MEM": "America/Chicago",
    "MKE": "America/Chicago",
    "MSP": "America/Chicago",
    "MSY": "America/Chicago",
    "OKC": "America/Chicago",
    "OMA": "America/Chicago",
    "ORD": "America/Chicago",
    "SAT": "America/Chicago",
    "STL": "America/Chicago",
    "TUL": "America/Chicago",
    "BHM": "America/Chicago",
    "ICT": "America/Chicago",
    "LIT": "America/Chicago",
    "MLI": "America/Chicago",
    "XNA": "America/Chicago",
    "ACT": "America/Chicago",
    "ALO": "America/Chicago",
    "AMA": "America/Chicago",
    "BIS": "America/Chicago",
    "BMI": "America/Chicago",
    "BRO": "America/Chicago",
    "CID": "America/Chicago",
    "CMI": "America/Chicago",
    "COU": "America/Chicago",
    "CRP": "America/Chicago",
    "DBQ": "America/Chicago",
    "DLH": "America/Chicago",
    "EVV": "America/Chicago",
    "FAR": "America/Chicago",
    "FSD": "America/Chicago",
    "FSM": "America/Chicago",
    "GFK": "America/Chicago",
    "GRB": "America/Chicago",
    "HRL": "America/Chicago",
    "HSV": "America/Chicago",
    "LBB": "America/Chicago",
    "LNK": "America/Chicago",
    "LRD": "America/Chicago",
    "LSE": "America/Chicago",
    "MAF": "America/Chicago",
    "MGM": "America/Chicago",
    "MLU": "America/Chicago",
    "PNS": "America/Chicago",
    "MOT": "America/Chicago",
    "MSN": "America/Chicago",
    "PIA": "America/Chicago",
    "RFD": "America/Chicago",
    "RST": "America/Chicago",
    "SGF": "America/Chicago",
    "SHV": "America/Chicago",
    "SUX": "America/Chicago",

    # Mountain Time (MST/MDT)
    "ABQ": "America/Denver",
    "BIL": "America/Denver",
    "BOI": "America/Denver",
    "BZN": "America/Denver",
    "COS": "America/Denver",
    "DEN": "America/Denver",
    "ELP": "America/Denver",
    "GJT": "America/Denver",
    "JAC": "America/Denver",
    "SLC": "America/Denver",
    "FCA": "America/Denver",
    "GTF": "America/Denver",
    "RAP": "America/Denver",

    # Arizona (no DST)
    "PHX": "America/Phoenix",
    "TUS": "America/Phoenix",

    # Pacific Time (PST/PDT)
    "BUR": "America/Los_Angeles",
    "FAT": "America/Los_Angeles",
    "LAS": "America/Los_Angeles",
    "LAX": "America/Los_Angeles",
    "LGB": "America/Los_Angeles",
    "OAK": "America/Los_Angeles",
    "ONT": "America/Los_Angeles",
    "PDX": "America/Los_Angeles",
    "BFI": "America/Los_Angeles",
    "PSP": "America/Los_Angeles",
    "RNO": "America/Los_Angeles",
    "SAN": "America/Los_Angeles",
    "SBD": "America/Los_Angeles",
    "SNA": "America/Los_Angeles",
    "SEA": "America/Los_Angeles",
    "SFO": "America/Los_Angeles",
    "SJC": "America/Los_Angeles",
    "SMF": "America/Los_Angeles",
    "MHR": "America/Los_Angeles",
    "GEG": "America/Los_Angeles",

    # Alaska Time
    "ANC": "America/Anchorage",
    "FAI": "America/Anchorage",
    "JNU": "America/Anchorage",

    # Hawaii Time (no DST)
    "HNL": "Pacific/Honolulu",
    "OGG": "Pacific/Honolulu",
    "KOA": "Pacific/Honolulu",
    "LIH": "Pacific/Honolulu",

    # US Territories
    "SJU": "America/Puerto_Rico",
    "STT": "America/St_Thomas",
    "STX": "America/St_Thomas",
    "GUM": "Pacific/Guam",
    "PPG": "Pacific/Pago_Pago",

    # Canada
    "YEG": "America/Edmonton",
    "YHM": "America/Toronto",
    "YHZ": "America/Halifax",
    "YMX": "America/Montreal",
    "YOW": "America/Toronto",
    "YUL": "America/Toronto",
    "YVR": "America/Vancouver",
    "YWG": "America/Winnipeg",
    "YYC": "America/Denver",
    "YYZ": "America/Toronto",
    "YYT": "America/St_Johns",

    # Mexico
    "CUN": "America/Cancun",
    "GDL": "America/Mexico_City",
    "MEX": "America/Mexico_City",
    "NLU": "America/Mexico_City",
    "PVR": "America/Mexico_City",
    "SJD": "America/Mazatlan",

    # Caribbean
    "AUA": "America/Aruba",
    "BGI": "America/Barbados",
    "CUR": "America/Curacao",
    "GCM": "America/Cayman",
    "KIN": "America/Jamaica",
    "MBJ": "America/Jamaica",
    "NAS": "America/Nassau",
    "PLS": "America/Grand_Turk",
    "POS": "America/Port_of_Spain",
    "PUJ": "America/Santo_Domingo",
    "SDQ": "America/Santo_Domingo",
    "SXM": "America/Lower_Princes",

    # Central America
    "BZE": "America/Belize",
    "GUA": "America/Guatemala",
    "LIR": "America/Costa_Rica",
    "MGA": "America/Managua",
    "PTY": "America/Panama",
    "SAL": "America/El_Salvador",
    "SAP": "America/Tegucigalpa",
    "SJO": "America/Costa_Rica",
    "TGU": "America/Tegucigalpa",

    # South America
    "BOG": "America/Bogota",
    "BSB": "America/Sao_Paulo",
    "CCS": "America/Caracas",
    "EZE": "America/Argentina/Buenos_Aires",
    "GIG": "America/Sao_Paulo",
    "GRU": "America/Sao_Paulo",
    "GYE": "America/Guayaquil",
    "LIM": "America/Lima",
    "MVD": "America/Montevideo",
    "SCL": "America/Santiago",
    "UIO": "America/Guayaquil",

    # Europe
    "AMS": "Europe/Amsterdam",
    "BCN": "Europe/Madrid",
    "BRU": "Europe/Brussels",
    "CDG": "Europe/Paris",
    "CPH": "Europe/Copenhagen",
    "CGN": "Europe/Berlin",
    "LGG": "Europe/Brussels",
    "PRG": "Europe/Prague",
    "OSL": "Europe/Oslo",
    "ARN": "Europe/Stockholm",
    "HEL": "Europe/Helsinki",
    "ATH": "Europe/Athens",
    "IST": "Europe/Istanbul",
    "SAW": "Europe/Istanbul",
    "BSL": "Europe/Zurich",
    "BGY": "Europe/Rome",
    "BLL": "Europe/Copenhagen",
    "KRK": "Europe/Warsaw",
    "GDN": "Europe/Warsaw",
    "WRO": "Europe/Warsaw",
    "RIX": "Europe/Riga",
    "VNO": "Europe/Vilnius",
    "TLL": "Europe/Tallinn",
    "DUB": "Europe/Dublin",
    "DUS": "Europe/Berlin",
    "EMA": "Europe/London",
    "FCO": "Europe/Rome",
    "FRA": "Europe/Berlin",
    "GVA": "Europe/Zurich",
    "LGW": "Europe/London",
    "LHR": "Europe/London",
    "STN": "Europe/London",
    "MAD": "Europe/Madrid",
    "MAN": "Europe/London",
    "MUC": "Europe/Berlin",
    "MXP": "Europe/Rome",
    "VCE": "Europe/Rome",
    "ORY": "Europe/Paris",
    "SVO": "Europe/Moscow",
    "VIE": "Europe/Vienna",
    "WAW": "Europe/Warsaw",
    "ZRH": "Europe/Zurich",

    # Asia
    "BKK": "Asia/Bangkok",
    "CAN": "Asia/Shanghai",
    "CGK": "Asia/Jakarta",
    "DEL": "Asia/Kolkata",
    "DXB": "Asia/Dubai",
    "HKG": "Asia/Hong_Kong",
    "ICN": "Asia/Seoul",
    "KIX": "Asia/Tokyo",
    "HND": "Asia/Tokyo",
    "KUL": "Asia/Kuala_Lumpur",
    "MNL": "Asia/Manila",
    "NRT": "Asia/Tokyo",
    "PEK": "Asia/Shanghai",
    "PNH": "Asia/Phnom_Penh",
    "PVG": "Asia/Shanghai",
    "SIN": "Asia/Singapore",
    "TPE": "Asia/Taipei",
    "SZX": "Asia/Shanghai",
    "XMN": "Asia/Shanghai",
    "CSX": "Asia/Shanghai",
    "WUH": "Asia/Shanghai",
    "ZGZJ": "Asia/Shanghai",

    # Oceania
    "AKL": "Pacific/Auckland",
    "BNE": "Australia/Brisbane",
    "MEL": "Australia/Melbourne",
    "PER": "Australia/Perth",
    "SYD": "Australia/Sydney",

    # Africa
    "JNB": "Africa/Johannesburg",
    "CAI": "Africa/Cairo",
    "CPT": "Africa/Johannesburg",
    "NBO": "Africa/Nairobi",
    "ADD": "Africa/Addis_Ababa",
    "LOS": "Africa/Lagos",
    "ACC": "Africa/Accra",
    "CMN": "Africa/Casablanca",
    "RBA": "Africa/Casablanca",
    "ALG": "Africa/Algiers",

    # Middle East
    "TLV": "Asia/Jerusalem",
    "AMM": "Asia/Amman",
    "DOH": "Asia/Qatar",
    "AUH": "Asia/Dubai",
    "SHJ": "Asia/Dubai",
    "KWI": "Asia/Kuwait",
    "JED": "Asia/Riyadh",
    "RUH": "Asia/Riyadh",
    "BAH": "Asia/Bahrain",
    "MCT": "Asia/Muscat",

    # China Special Cases
    "ACEN": "Asia/Shanghai",
}

AIRPORT_TIME_ZONES: Mapping[str, str] = MappingProxyType(_AIRPORT_TIME_ZONES)

_CODE_COLUMNS = ("icao", "iata", "lid", "code")


def normalize_airport_code(code: Optional[str]) -> Optional[str]:
    if not isinstance(code, str):
        return None
    cleaned = code.strip().upper()
    return cleaned or None


def airport_timezone(
    code: Optional[str],
    table: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Return the IANA timezone for ``code`` or ``None`` when it is unmapped.

    Codes are matched case-insensitively. ``table`` defaults to the embedded
    :data:`AIRPORT_TIME_ZONES` mapping.
    """

    normalized = normalize_airport_code(code)
    if normalized is None:
        return None
    lookup = AIRPORT_TIME_ZONES if table is None else table
    return lookup.get(normalized)


def load_airport_tz_table(
    path: str | Path,
    base: Optional[Mapping[str, str]] = None,
) -> Mapping[str, str]:
    """Merge airport timezones from a CSV file over ``base``.

    The file follows the airport metadata convention of ``icao``/``iata``/``lid``
    code columns (a plain ``code`` column is also accepted) plus a ``tz``
    column. Rows without a timezone are ignored. The returned mapping is
    read-only; ``base`` is left untouched.
    """

    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Airport timezone file not found: {csv_path}")

    df = pd.read_csv(csv_path, dtype=str)
    if "tz" not in df.columns:
        raise ValueError(f"Airport timezone file {csv_path} has no 'tz' column")

    merged: Dict[str, str] = dict(AIRPORT_TIME_ZONES if base is None else base)
    code_columns = [col for col in _CODE_COLUMNS if col in df.columns]
    for _, row in df.iterrows():
        tz_value = row.get("tz")
        if not isinstance(tz_value, str) or not tz_value.strip():
            continue
        for key in code_columns:
            code = normalize_airport_code(row.get(key))
            if code:
                merged[code] = tz_value.strip()

    return MappingProxyType(merged)
