LEGAL_FORM_LABELS: dict[str, str] = {
    "GmbH": "Gesellschaft mit beschränkter Haftung (GmbH)",
    "AG": "Aktiengesellschaft (AG)",
    "UG": "Unternehmergesellschaft, haftungsbeschränkt (UG)",
    "KG": "Kommanditgesellschaft (KG)",
    "OHG": "Offene Handelsgesellschaft (oHG)",
    "oHG": "Offene Handelsgesellschaft (oHG)",
    "GbR": "Gesellschaft bürgerlichen Rechts (GbR)",
    "eGbR": "eingetragene Gesellschaft bürgerlichen Rechts (eGbR)",
    "eG": "eingetragene Genossenschaft (eG)",
    "eV": "eingetragener Verein (eV)",
    "e.V.": "eingetragener Verein (eV)",
    "SE": "europäische Gesellschaft (SE)",
    "KGaA": "Kommanditgesellschaft auf Aktien (KGaA)",
    "PartG": "Partnerschaftsgesellschaft (PartG)",
    "PartGmbB": "Partnerschaftsgesellschaft mit beschränkter Berufshaftung (PartGmbB)",
    "Stiftung": "Stiftung bürgerlichen Rechts",
}

COUNTRY_NAMES: dict[str, str] = {
    "DE": "Deutschland",
    "AT": "Österreich",
    "CH": "Schweiz",
    "FR": "Frankreich",
    "IT": "Italien",
    "ES": "Spanien",
    "NL": "Niederlande",
    "BE": "Belgien",
    "PL": "Polen",
    "GB": "Großbritannien",
    "US": "Vereinigte Staaten von Amerika",
}


def map_legal_form(abbreviation: str) -> str:
    """Long dropdown label for a legal form; anything unknown is passed through as typed."""
    return LEGAL_FORM_LABELS.get(abbreviation, abbreviation)


def country_display_name(code: str) -> str:
    # Upper-case ISO codes only; "de" is passed through unchanged.
    return COUNTRY_NAMES.get(code, code)
