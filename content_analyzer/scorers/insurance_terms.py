"""
Insurance-acceptance taxonomy.

STATEMENTS are phrases that directly assert insurance acceptance (strong
evidence on their own). PROVIDERS are insurer names, which only count when
they appear near "insurance"/"coverage" and more than one is mentioned.
"""

STATEMENTS = [
    "we accept insurance",
    "we take insurance",
    "insurance accepted",
    "accepts insurance",
    "accept most insurance",
    "accept most major insurance",
    "most insurance plans accepted",
    "major insurance plans accepted",
    "insurance plans we accept",
    "insurance providers we accept",
    "in-network with",
    "in-network provider",
    "in-network with most insurance",
    "we are in-network",
    "we bill insurance",
    "we will bill your insurance",
    "work with your insurance",
    "work with most insurance",
    "verify your insurance",
    "insurance verification",
    "check your insurance benefits",
    "covered by your insurance",
    "covered by insurance",
]

PROVIDERS = [
    "Aetna",
    "Anthem",
    "Blue Cross",
    "Blue Shield",
    "BlueCross BlueShield",
    "BCBS",
    "Cigna",
    "Humana",
    "Kaiser Permanente",
    "UnitedHealthcare",
    "United Healthcare",
    "Optum",
    "Magellan",
    "Beacon Health Options",
    "Carelon",
    "Medicaid",
    "Medicare",
    "Tricare",
    "Ambetter",
    "Amerigroup",
    "Molina",
    "Highmark",
    "Oscar Health",
    "Wellcare",
    "Oxford Health",
    "ComPsych",
]

# Words a provider mention is measured against for proximity
PROXIMITY_ANCHORS = ["insurance", "coverage"]
