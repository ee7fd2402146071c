"""
Kenya Location Reference Data

The 47 counties in their official order, and the sub-county lists the
application form knows about. Counties without a list accept any
sub-county value.
"""

COUNTIES: tuple[str, ...] = (
    "Nairobi",
    "Mombasa",
    "Kwale",
    "Kilifi",
    "Tana River",
    "Lamu",
    "Taita-Taveta",
    "Garissa",
    "Wajir",
    "Mandera",
    "Marsabit",
    "Isiolo",
    "Meru",
    "Tharaka-Nithi",
    "Embu",
    "Kitui",
    "Machakos",
    "Makueni",
    "Nyandarua",
    "Nyeri",
    "Kirinyaga",
    "Murang'a",
    "Kiambu",
    "Turkana",
    "West Pokot",
    "Samburu",
    "Trans-Nzoia",
    "Uasin Gishu",
    "Elgeyo-Marakwet",
    "Nandi",
    "Baringo",
    "Laikipia",
    "Nakuru",
    "Narok",
    "Kajiado",
    "Kericho",
    "Bomet",
    "Kakamega",
    "Vihiga",
    "Bungoma",
    "Busia",
    "Siaya",
    "Kisumu",
    "Homa Bay",
    "Migori",
    "Kisii",
    "Nyamira",
)

SUB_COUNTIES: dict[str, tuple[str, ...]] = {
    "Nairobi": (
        "Westlands",
        "Dagoretti North",
        "Dagoretti South",
        "Langata",
        "Kibra",
        "Roysambu",
        "Kasarani",
        "Ruaraka",
        "Embakasi South",
        "Embakasi North",
        "Embakasi Central",
        "Embakasi East",
        "Embakasi West",
        "Makadara",
        "Kamukunji",
        "Starehe",
        "Mathare",
    ),
    "Mombasa": ("Changamwe", "Jomba", "Kisauni", "Nyali", "Likoni", "Mvita"),
    "Kiambu": (
        "Gatundu South",
        "Gatundu North",
        "Juja",
        "Thika Town",
        "Ruiru",
        "Githunguri",
        "Kiambu Town",
        "Kiambaa",
        "Kabete",
        "Kikuyu",
        "Limuru",
        "Lari",
    ),
}


def is_known_county(county: str) -> bool:
    return county in COUNTIES


def sub_counties_for(county: str) -> list[str]:
    """Known sub-counties of ``county``; empty when none are listed."""
    return list(SUB_COUNTIES.get(county, ()))


def is_valid_sub_county(county: str, sub_county: str) -> bool:
    """
    Check a county/sub-county pair.

    Only counties with a known list constrain the value.
    """
    known = SUB_COUNTIES.get(county)
    if known is None:
        return True
    return sub_county in known
