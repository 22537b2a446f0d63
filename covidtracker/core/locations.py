"""COVID Tracker — Location Registry.

Closed set of locations the tracker reports on: the country aggregate plus
every state, DC and the inhabited territories. The enum value is the stable
short code used as join key and persistence key.
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class Location(str, Enum):
    """A reporting location, valued by its postal code."""

    US = "US"
    AL = "AL"
    AK = "AK"
    AZ = "AZ"
    AR = "AR"
    CA = "CA"
    CO = "CO"
    CT = "CT"
    DE = "DE"
    DC = "DC"
    FL = "FL"
    GA = "GA"
    HI = "HI"
    ID = "ID"
    IL = "IL"
    IN = "IN"
    IA = "IA"
    KS = "KS"
    KY = "KY"
    LA = "LA"
    ME = "ME"
    MD = "MD"
    MA = "MA"
    MI = "MI"
    MN = "MN"
    MS = "MS"
    MO = "MO"
    MT = "MT"
    NE = "NE"
    NV = "NV"
    NH = "NH"
    NJ = "NJ"
    NM = "NM"
    NY = "NY"
    NC = "NC"
    ND = "ND"
    OH = "OH"
    OK = "OK"
    OR = "OR"
    PA = "PA"
    RI = "RI"
    SC = "SC"
    SD = "SD"
    TN = "TN"
    TX = "TX"
    UT = "UT"
    VT = "VT"
    VA = "VA"
    WA = "WA"
    WV = "WV"
    WI = "WI"
    WY = "WY"
    AS = "AS"
    GU = "GU"
    MP = "MP"
    PR = "PR"
    VI = "VI"

    @property
    def code(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return LOCATION_NAMES[self][0]

    @property
    def is_country(self) -> bool:
        return self is Location.US

    @classmethod
    def from_code(cls, code: Optional[str]) -> Optional["Location"]:
        """Resolve a postal code. Unknown codes give ``None``."""
        if not code:
            return None
        try:
            return cls(code.strip().upper())
        except ValueError:
            return None

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["Location"]:
        """Resolve an exact location name as written by the vaccination feeds."""
        if name is None:
            return None
        return _BY_NAME.get(name)


# ─────────────────────────────────────────────
# NAMES — display name first, then feed aliases
# ─────────────────────────────────────────────

LOCATION_NAMES: Dict[Location, Tuple[str, ...]] = {
    Location.US: ("United States", "US"),
    Location.AL: ("Alabama",),
    Location.AK: ("Alaska",),
    Location.AZ: ("Arizona",),
    Location.AR: ("Arkansas",),
    Location.CA: ("California",),
    Location.CO: ("Colorado",),
    Location.CT: ("Connecticut",),
    Location.DE: ("Delaware",),
    Location.DC: ("District of Columbia",),
    Location.FL: ("Florida",),
    Location.GA: ("Georgia",),
    Location.HI: ("Hawaii",),
    Location.ID: ("Idaho",),
    Location.IL: ("Illinois",),
    Location.IN: ("Indiana",),
    Location.IA: ("Iowa",),
    Location.KS: ("Kansas",),
    Location.KY: ("Kentucky",),
    Location.LA: ("Louisiana",),
    Location.ME: ("Maine",),
    Location.MD: ("Maryland",),
    Location.MA: ("Massachusetts",),
    Location.MI: ("Michigan",),
    Location.MN: ("Minnesota",),
    Location.MS: ("Mississippi",),
    Location.MO: ("Missouri",),
    Location.MT: ("Montana",),
    Location.NE: ("Nebraska",),
    Location.NV: ("Nevada",),
    Location.NH: ("New Hampshire",),
    Location.NJ: ("New Jersey",),
    Location.NM: ("New Mexico",),
    Location.NY: ("New York", "New York State"),
    Location.NC: ("North Carolina",),
    Location.ND: ("North Dakota",),
    Location.OH: ("Ohio",),
    Location.OK: ("Oklahoma",),
    Location.OR: ("Oregon",),
    Location.PA: ("Pennsylvania",),
    Location.RI: ("Rhode Island",),
    Location.SC: ("South Carolina",),
    Location.SD: ("South Dakota",),
    Location.TN: ("Tennessee",),
    Location.TX: ("Texas",),
    Location.UT: ("Utah",),
    Location.VT: ("Vermont",),
    Location.VA: ("Virginia",),
    Location.WA: ("Washington",),
    Location.WV: ("West Virginia",),
    Location.WI: ("Wisconsin",),
    Location.WY: ("Wyoming",),
    Location.AS: ("American Samoa",),
    Location.GU: ("Guam",),
    Location.MP: ("Northern Mariana Islands",),
    Location.PR: ("Puerto Rico",),
    Location.VI: ("Virgin Islands", "U.S. Virgin Islands"),
}

_BY_NAME: Dict[str, Location] = {
    name: location for location, names in LOCATION_NAMES.items() for name in names
}