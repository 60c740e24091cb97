"""Best-effort country lookup from edge-provided headers.

CDNs and edge proxies (Cloudflare, Vercel, CloudFront) resolve the client's
country and forward it as a request header; no local GeoIP database is used.
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

# Placeholder values edge providers send when they could not resolve a country
UNKNOWN_COUNTRY_VALUES = frozenset({"", "XX", "T1", "ZZ", "A1", "A2", "O1"})

COUNTRY_NAMES = {
    "AE": "United Arab Emirates", "AF": "Afghanistan", "AL": "Albania", "AM": "Armenia",
    "AO": "Angola", "AR": "Argentina", "AT": "Austria", "AU": "Australia",
    "AZ": "Azerbaijan", "BA": "Bosnia and Herzegovina", "BD": "Bangladesh", "BE": "Belgium",
    "BG": "Bulgaria", "BH": "Bahrain", "BO": "Bolivia", "BR": "Brazil",
    "BY": "Belarus", "CA": "Canada", "CH": "Switzerland", "CL": "Chile",
    "CM": "Cameroon", "CN": "China", "CO": "Colombia", "CR": "Costa Rica",
    "CU": "Cuba", "CY": "Cyprus", "CZ": "Czechia", "DE": "Germany",
    "DK": "Denmark", "DO": "Dominican Republic", "DZ": "Algeria", "EC": "Ecuador",
    "EE": "Estonia", "EG": "Egypt", "ES": "Spain", "ET": "Ethiopia",
    "FI": "Finland", "FR": "France", "GB": "United Kingdom", "GE": "Georgia",
    "GH": "Ghana", "GR": "Greece", "GT": "Guatemala", "HK": "Hong Kong",
    "HN": "Honduras", "HR": "Croatia", "HU": "Hungary", "ID": "Indonesia",
    "IE": "Ireland", "IL": "Israel", "IN": "India", "IQ": "Iraq",
    "IR": "Iran", "IS": "Iceland", "IT": "Italy", "JM": "Jamaica",
    "JO": "Jordan", "JP": "Japan", "KE": "Kenya", "KG": "Kyrgyzstan",
    "KH": "Cambodia", "KR": "South Korea", "KW": "Kuwait", "KZ": "Kazakhstan",
    "LB": "Lebanon", "LK": "Sri Lanka", "LT": "Lithuania", "LU": "Luxembourg",
    "LV": "Latvia", "MA": "Morocco", "MD": "Moldova", "ME": "Montenegro",
    "MK": "North Macedonia", "MM": "Myanmar", "MN": "Mongolia", "MT": "Malta",
    "MX": "Mexico", "MY": "Malaysia", "NG": "Nigeria", "NI": "Nicaragua",
    "NL": "Netherlands", "NO": "Norway", "NP": "Nepal", "NZ": "New Zealand",
    "OM": "Oman", "PA": "Panama", "PE": "Peru", "PH": "Philippines",
    "PK": "Pakistan", "PL": "Poland", "PR": "Puerto Rico", "PT": "Portugal",
    "PY": "Paraguay", "QA": "Qatar", "RO": "Romania", "RS": "Serbia",
    "RU": "Russia", "SA": "Saudi Arabia", "SE": "Sweden", "SG": "Singapore",
    "SI": "Slovenia", "SK": "Slovakia", "SN": "Senegal", "SV": "El Salvador",
    "SY": "Syria", "TH": "Thailand", "TN": "Tunisia", "TR": "Turkey",
    "TW": "Taiwan", "TZ": "Tanzania", "UA": "Ukraine", "UG": "Uganda",
    "US": "United States", "UY": "Uruguay", "UZ": "Uzbekistan", "VE": "Venezuela",
    "VN": "Vietnam", "YE": "Yemen", "ZA": "South Africa", "ZM": "Zambia",
    "ZW": "Zimbabwe",
}


@dataclass(frozen=True)
class GeoInfo:
    country_code: str
    country_name: Optional[str] = None


def is_public_ip(ip: Optional[str]) -> bool:
    """Whether an address is globally routable; unparsable input is not."""
    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return not (address.is_private or address.is_loopback or address.is_link_local
                or address.is_reserved or address.is_multicast or address.is_unspecified)


def country_name(country_code: str) -> Optional[str]:
    return COUNTRY_NAMES.get(country_code.upper())


class GeoLookup:
    """Resolves a client IP to a country using trusted edge headers."""

    def __init__(self, country_headers: Iterable[str]):
        self.country_headers = tuple(header.lower() for header in country_headers)

    def lookup(self, ip: Optional[str], headers: Mapping[str, str]) -> Optional[GeoInfo]:
        """
        Resolve the caller's country.

        Private, loopback and unparsable addresses never resolve. Codes not in
        the name table keep the code without a name.

        Returns:
            GeoInfo, or None when no country is known
        """
        if not is_public_ip(ip):
            return None

        for header in self.country_headers:
            value = (headers.get(header) or "").strip().upper()
            if value in UNKNOWN_COUNTRY_VALUES:
                continue
            if len(value) != 2 or not value.isalpha():
                logger.debug(f"Ignoring malformed country header {header}={value!r}")
                continue
            return GeoInfo(country_code=value, country_name=country_name(value))

        return None
