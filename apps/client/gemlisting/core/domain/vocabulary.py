"""Controlled vocabularies for gem listing fields (GIA and trade usage)."""

GEM_TYPES = sorted([
    "Diamond", "Ruby", "Sapphire", "Emerald",
    "Amethyst", "Aquamarine", "Beryl", "Citrine", "Garnet", "Jade", "Opal", "Pearl",
    "Peridot", "Quartz", "Spinel", "Tanzanite", "Topaz", "Tourmaline", "Turquoise", "Zircon",
    "Agate", "Alexandrite", "Amazonite", "Amber", "Andalusite", "Apatite", "Aventurine",
    "Azurite", "Bloodstone", "Carnelian", "Chalcedony", "Chrysoberyl", "Chrysocolla",
    "Chrysoprase", "Coral", "Corundum", "Diopside", "Feldspar", "Fluorite", "Hematite",
    "Howlite", "Iolite", "Jasper", "Kyanite", "Labradorite", "Lapis Lazuli", "Larimar",
    "Malachite", "Moldavite", "Moonstone", "Morganite", "Obsidian", "Onyx", "Prehnite",
    "Pyrite", "Rose Quartz", "Smoky Quartz", "Sodalite", "Sunstone", "Tiger's Eye",
    "Unakite", "Variscite", "Vesuvianite",
])

GEM_VARIETIES = sorted([
    # Sapphire
    "Ceylon Blue Sapphire", "Blue Sapphire", "Burmese Sapphire", "Kashmir Sapphire",
    "Padparadscha Sapphire", "Star Sapphire", "Yellow Sapphire", "Pink Sapphire",
    "White Sapphire", "Purple Sapphire", "Green Sapphire", "Orange Sapphire", "Parti Sapphire",
    # Ruby
    "Pigeon's Blood Ruby", "Burmese Ruby", "Thai Ruby", "Star Ruby", "Mozambique Ruby",
    # Emerald
    "Colombian Emerald", "Zambian Emerald", "Brazilian Emerald", "Ethiopian Emerald",
    "Sandawana Emerald",
    # Tourmaline
    "Paraíba Tourmaline", "Rubellite Tourmaline", "Indicolite Tourmaline", "Chrome Tourmaline",
    "Watermelon Tourmaline", "Bi-color Tourmaline", "Green Tourmaline", "Pink Tourmaline",
    # Garnet
    "Tsavorite Garnet", "Demantoid Garnet", "Spessartine Garnet", "Almandine Garnet",
    "Pyrope Garnet", "Rhodolite Garnet", "Mandarin Garnet", "Mali Garnet", "Color Change Garnet",
    # Topaz
    "Imperial Topaz", "London Blue Topaz", "Swiss Blue Topaz", "Sky Blue Topaz", "Mystic Topaz",
    "Pink Topaz", "Champagne Topaz", "White Topaz",
    # Beryl
    "Morganite", "Heliodor", "Bixbite", "Goshenite", "Green Beryl",
    # Chrysoberyl
    "Cat's Eye Chrysoberyl", "Alexandrite",
    # Opal
    "Black Opal", "White Opal", "Boulder Opal", "Fire Opal", "Crystal Opal", "Matrix Opal",
    "Water Opal",
    # Quartz
    "Rose Quartz", "Smoky Quartz", "Rutilated Quartz", "Prasiolite", "Ametrine", "Citrine",
    "Amethyst", "Rock Crystal", "Aventurine", "Tiger's Eye", "Hawk's Eye", "Cat's Eye Quartz",
    # Jade
    "Jadeite", "Nephrite", "Imperial Jade", "Lavender Jade", "Black Jade",
    # Zircon
    "Blue Zircon", "Golden Zircon", "Colorless Zircon",
    # Spinel
    "Red Spinel", "Pink Spinel", "Blue Spinel", "Lavender Spinel", "Black Spinel",
    # Pearl
    "Akoya Pearl", "South Sea Pearl", "Tahitian Pearl", "Freshwater Pearl", "Baroque Pearl",
    "Keshi Pearl",
    # Other
    "Tanzanite", "Iolite", "Andalusite", "Sphene", "Kunzite", "Hiddenite", "Peridot",
    "Moldavite", "Labradorite", "Spectrolite", "Rainbow Moonstone", "Sunstone", "Oregon Sunstone",
])

SHAPE_CUT_OPTIONS = sorted([
    "Round Brilliant", "Emerald Cut", "Cushion", "Oval", "Pear", "Marquise", "Princess",
    "Asscher", "Radiant", "Heart", "Trillion", "Trilliant", "Baguette", "Cabochon", "Bead",
    "Rose Cut", "Step Cut", "Mixed Cut", "Fancy Cut", "Freeform", "Briolette", "Oval Mixed",
    "Square Cushion", "Rectangular Cushion", "Antique Cushion", "Old Mine Cut",
    "Old European Cut", "French Cut", "Scissor Cut", "Portuguese Cut", "Barion Cut",
    "Checkerboard Cut",
])

COLOR_OPTIONS = sorted([
    "Colorless", "White", "Black", "Red", "Pigeon Blood Red", "Deep Red", "Pink", "Light Pink",
    "Deep Pink", "Hot Pink", "Orange", "Orange-Pink", "Padparadscha", "Yellow", "Golden Yellow",
    "Canary Yellow", "Light Yellow", "Green", "Deep Green", "Vivid Green", "Forest Green",
    "Mint Green", "Olive Green", "Blue", "Sky Blue", "Ceylon Blue", "Royal Blue",
    "Cornflower Blue", "Navy Blue", "Teal Blue", "Aqua Blue", "Violet", "Purple", "Lavender",
    "Deep Purple", "Brown", "Cognac", "Champagne", "Chocolate Brown", "Peach", "Salmon", "Coral",
    "Teal", "Turquoise", "Multi-colored", "Bi-color", "Parti-color", "Tri-color", "Color Change",
    "Fire", "Opalescent", "Iridescent", "Pastel Pink", "Pastel Blue", "Pastel Green",
    "Pastel Yellow", "Neon Blue", "Electric Blue", "Paraíba Blue", "Apple Green", "Chrome Green",
])

# Grading order matters here, so this list is not sorted.
CLARITY_GRADES = [
    "FL (Flawless)",
    "IF (Internally Flawless)",
    "VVS1 (Very Very Slightly Included)",
    "VVS2 (Very Very Slightly Included)",
    "VS1 (Very Slightly Included)",
    "VS2 (Very Slightly Included)",
    "SI1 (Slightly Included)",
    "SI2 (Slightly Included)",
    "I1 (Included)",
    "I2 (Included)",
    "I3 (Included)",
    "Dcl (Déclassé)",
    "Type I (Usually Eye-Clean)",
    "Type II (Usually Included)",
    "Type III (Almost Always Included)",
    "Eye Clean",
    "Slightly Included",
    "Moderately Included",
    "Heavily Included",
    "Opaque",
    "Translucent",
    "Transparent",
]

ORIGIN_OPTIONS = sorted([
    "Sri Lanka (Ceylon)", "Myanmar (Burma)", "Mogok (Myanmar)", "Colombia", "Brazil", "Zambia",
    "Madagascar", "Thailand", "Australia", "Kashmir", "Kashmir Valley", "Montana (USA)",
    "Tanzania", "Kenya", "Pakistan", "Afghanistan", "Russia", "China", "Mexico", "Ethiopia",
    "Greenland", "India", "Germany", "New Zealand", "Mozambique", "Oman", "Cambodia",
    "Panjshir (Afghanistan)", "Arkansas (USA)", "Maine (USA)", "North Carolina (USA)",
    "California (USA)", "Nigeria", "Malawi", "Nepal", "Vietnam", "Laos", "Zimbabwe", "Botswana",
    "South Africa", "Namibia", "Angola", "Democratic Republic of Congo", "Mali", "Ghana",
    "Turkey", "Iran", "Tajikistan", "Kazakhstan", "Norway", "Finland", "Czech Republic", "Peru",
    "Chile", "Argentina", "Uruguay", "Canada", "Unknown Origin", "Undisclosed Origin",
])

TREATMENT_OPTIONS = sorted([
    "None (Natural/Untreated)", "No Indication of Treatment", "Heat Treatment", "Heat Only",
    "No Heat", "Heated", "Bleaching", "Dyeing", "Surface Coating", "Fracture Filling",
    "Glass Filling", "Resin Filling", "Oil Treatment", "Oiling", "Minor Oil", "Moderate Oil",
    "Significant Oil", "Wax Impregnation", "Polymer Impregnation",
    "HPHT (High Pressure High Temperature)", "Lattice Diffusion", "Surface Diffusion",
    "Beryllium Diffusion", "Titanium Diffusion", "Irradiation", "Gamma Irradiation",
    "Electron Beam Irradiation", "Neutron Irradiation", "Laser Drilling", "Clarity Enhancement",
    "Lead Glass Filling", "Composite Stone", "Assembled Stone", "Heat + Irradiation",
    "Diffusion + Coating", "Multiple Treatments", "Treatment Undisclosed", "Unknown Treatment",
])

LAB_NAMES = sorted([
    "GIA (Gemological Institute of America)",
    "SSEF (Swiss Gemmological Institute)",
    "Gübelin Gem Lab",
    "AIGS (Asian Institute of Gemological Sciences)",
    "Lotus Gemology",
    "GRS (Gem Research Swisslab)",
    "Guild Laboratories",
    "AGL (American Gemological Laboratories)",
    "C. Dunaigre",
    "AGCL (Asian Gemological Centre and Laboratory)",
    "GGTL (Gem and Gold Testing Laboratory)",
    "Gemmological Association of Great Britain",
    "GAAJ (Gemmological Association of All Japan)",
    "CGL (Central Gem Laboratory)",
    "Tokyo Gem Science",
    "NGTC (National Gemstone Testing Center)",
    "GIT (Gem and Jewelry Institute of Thailand)",
    "GULAB (Gemmological University Laboratory)",
    "GCAL (Gem Certification & Assurance Lab)",
    "EGL (European Gemological Laboratory)",
    "IGI (International Gemological Institute)",
    "GSI (Gemological Science International)",
    "NGJA (Sri Lanka)",
    "GIC (Gemmological Institute of Colombo)",
    "GLS (Gemmological Laboratory Services)",
    "Kandy Gem Laboratory",
    "Sapphire Testing Lab (Beruwala)",
    "Other Laboratory",
    "No Certificate",
])

INVESTMENT_GRADES = ["A+", "A", "A-", "B+", "B", "B-", "C+", "C", "Not Graded"]
MARKET_TRENDS = ["Rising", "Stable", "Declining", "Unknown"]
FLUORESCENCE_INTENSITIES = ["None", "Faint", "Medium", "Strong", "Very Strong"]
FLUORESCENCE_COLORS = ["Blue", "Yellow", "Green", "Red", "Orange", "White", "Violet", "Pink", "Multi-color"]
POLISH_SYMMETRY_GRADES = ["Excellent", "Very Good", "Good", "Fair", "Poor"]
