"""Best-effort reconciliation of OCR output with the listing vocabularies.

Matching runs exact → known trade/OCR variants → fuzzy similarity. When
nothing clears the threshold the raw OCR value is kept, so the seller can
still correct it by hand.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from gemlisting.core.domain import vocabulary as vocab
from gemlisting.interfaces.api.schemas import ExtractedMetadata

MIN_SIMILARITY = 0.6

SHAPE_CUT_PATTERNS = {
    "round": ["round", "round brilliant", "brilliant", "rd", "rnd"],
    "oval": ["oval", "ov", "oval mixed", "oval brilliant"],
    "cushion": ["cushion", "cush", "square cushion", "rectangular cushion", "antique cushion", "sahepe", "sahape"],
    "emerald": ["emerald", "emerald cut", "em", "step cut"],
    "pear": ["pear", "pear shape", "tear drop", "teardrop", "pr"],
    "marquise": ["marquise", "marquis", "navette", "mq"],
    "princess": ["princess", "square", "pr", "princess cut"],
    "asscher": ["asscher", "square emerald", "step cut square"],
    "radiant": ["radiant", "rectangular", "rect", "ra"],
    "heart": ["heart", "heart shape", "ht"],
    "trillion": ["trillion", "trilliant", "triangular", "tri", "tr"],
    "baguette": ["baguette", "bag", "rectangular", "step cut"],
    "cabochon": ["cabochon", "cab", "dome", "smooth", "polished"],
    "rose cut": ["rose", "rose cut", "antique"],
    "mixed cut": ["mixed", "mixed cut", "combination"],
}

COLOR_PATTERNS = {
    "pigeon blood red": ["pigeon blood", "pigeon-blood", "pigeonblood", "vivid red"],
    "padparadscha": ["padparadscha", "padparadsha", "lotus", "pink-orange", "salmon"],
    "cornflower blue": ["cornflower", "corn flower", "vivid blue", "intense blue"],
    "royal blue": ["royal", "deep blue", "intense blue"],
    "ceylon blue": ["ceylon", "light blue", "sky blue"],
    "vivid green": ["vivid green", "intense green", "emerald green"],
    "canary yellow": ["canary", "vivid yellow", "intense yellow"],
    "champagne": ["champagne", "light brown", "golden brown"],
    "cognac": ["cognac", "brown", "dark brown"],
    "paraíba blue": ["paraiba", "neon blue", "electric blue", "turquoise"],
}

ORIGIN_PATTERNS = {
    "sri lanka (ceylon)": ["sri lanka", "ceylon", "srilanka"],
    "myanmar (burma)": ["myanmar", "burma", "burma (myanmar)"],
    "mogok (myanmar)": ["mogok", "mogok burma", "mogok myanmar"],
    "kashmir": ["kashmir", "kashmir valley", "kashmir india"],
    "madagascar": ["madagascar", "malagasy"],
    "montana (usa)": ["montana", "usa montana", "united states"],
    "colombia": ["colombia", "columbian", "south america"],
    "zambia": ["zambia", "african"],
    "brazil": ["brazil", "brazilian"],
    "thailand": ["thailand", "thai", "siam"],
    "australia": ["australia", "australian"],
    "tanzania": ["tanzania", "tanzanian"],
    "afghanistan": ["afghanistan", "afghan"],
    "panjshir (afghanistan)": ["panjshir", "panjsher", "afghanistan panjshir"],
}

TREATMENT_PATTERNS = {
    "none (natural/untreated)": ["none", "natural", "untreated", "no treatment", "n"],
    "no indication of treatment": ["no indication", "no evidence", "not detected"],
    "heat treatment": ["heat", "heated", "heat treatment", "thermal", "h"],
    "heat only": ["heat only", "heated only", "thermal only"],
    "no heat": ["no heat", "unheated", "nh"],
    "oiling": ["oil", "oiled", "oiling", "cedar oil", "minor oil"],
    "minor oil": ["minor oil", "slight oil", "light oil"],
    "moderate oil": ["moderate oil", "medium oil"],
    "significant oil": ["significant oil", "heavy oil", "major oil"],
    "irradiation": ["irradiated", "irradiation", "gamma", "electron"],
    "diffusion": ["diffusion", "diffused", "surface diffusion"],
    "fracture filling": ["fracture filling", "filled", "glass filled"],
    "clarity enhancement": ["clarity enhanced", "enhanced", "ce"],
}

LAB_PATTERNS = {
    "gia (gemological institute of america)": ["gia", "gemological institute", "america"],
    "ssef (swiss gemmological institute)": ["ssef", "swiss", "basel"],
    "gübelin gem lab": ["gubelin", "gübelin", "guebelin"],
    "grs (gem research swisslab)": ["grs", "gem research", "swisslab"],
    "aigs (asian institute of gemological sciences)": ["aigs", "asian institute"],
    "lotus gemology": ["lotus", "lotus gemology"],
    "guild laboratories": ["guild", "guild lab"],
    "agl (american gemological laboratories)": ["agl", "american gemological"],
    "cgl (central gem laboratory)": ["cgl", "central gem"],
    "gic (gemmological institute of colombo)": ["gic", "colombo", "institute colombo"],
    "ngja (sri lanka)": ["ngja", "sri lanka authority", "national gem"],
    "kandy gem laboratory": ["kandy", "kandy lab"],
    "sapphire testing lab (beruwala)": ["beruwala", "sapphire testing"],
}

CLARITY_PATTERNS = {
    "fl (flawless)": ["fl", "flawless", "perfect"],
    "if (internally flawless)": ["if", "internally flawless", "internal flawless"],
    "vvs1 (very very slightly included)": ["vvs1", "vvs 1", "very very slight"],
    "vvs2 (very very slightly included)": ["vvs2", "vvs 2"],
    "vs1 (very slightly included)": ["vs1", "vs 1", "very slight"],
    "vs2 (very slightly included)": ["vs2", "vs 2"],
    "si1 (slightly included)": ["si1", "si 1", "slight"],
    "si2 (slightly included)": ["si2", "si 2"],
    "i1 (included)": ["i1", "i 1", "included"],
    "i2 (included)": ["i2", "i 2"],
    "i3 (included)": ["i3", "i 3"],
    "eye clean": ["eye clean", "eyeclean", "clean"],
    "transparent": ["transparent", "clear"],
    "translucent": ["translucent", "semi-transparent"],
    "type i (usually eye-clean)": ["type 1", "type i", "type one"],
    "type ii (usually included)": ["type 2", "type ii", "type two"],
    "type iii (almost always included)": ["type 3", "type iii", "type three"],
}


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """0..1 similarity; 1 is an exact (case-insensitive) match."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a.lower(), b.lower())) / longest


def find_best_match(
    value: str,
    options: Sequence[str],
    patterns: Optional[Dict[str, List[str]]] = None,
    min_similarity: float = MIN_SIMILARITY,
) -> Optional[str]:
    if not value:
        return None
    needle = value.lower().strip()
    if not needle:
        return None

    for option in options:
        if option.lower() == needle:
            return option

    if patterns:
        for standard, variations in patterns.items():
            if any(variation in needle or needle in variation for variation in variations):
                for option in options:
                    if option.lower() == standard:
                        return option

    best: Optional[str] = None
    best_score = 0.0
    for option in options:
        lowered = option.lower()
        score = similarity(needle, lowered)
        if score > best_score and score >= min_similarity:
            best, best_score = option, score
        if lowered in needle or needle in lowered:
            containment = min(len(needle), len(lowered)) / max(len(needle), len(lowered))
            if containment > best_score and containment >= min_similarity:
                best, best_score = option, containment
    return best


def _matcher(options: Sequence[str], patterns: Optional[Dict[str, List[str]]] = None) -> Callable[[str], Optional[str]]:
    return lambda value: find_best_match(value, options, patterns)


MATCHERS: Dict[str, Callable[[str], Optional[str]]] = {
    "gem_type": _matcher(vocab.GEM_TYPES),
    "variety": _matcher(vocab.GEM_VARIETIES),
    "shape_cut": _matcher(vocab.SHAPE_CUT_OPTIONS, SHAPE_CUT_PATTERNS),
    "color": _matcher(vocab.COLOR_OPTIONS, COLOR_PATTERNS),
    "clarity": _matcher(vocab.CLARITY_GRADES, CLARITY_PATTERNS),
    "origin": _matcher(vocab.ORIGIN_OPTIONS, ORIGIN_PATTERNS),
    "treatments": _matcher(vocab.TREATMENT_OPTIONS, TREATMENT_PATTERNS),
    "lab_name": _matcher(vocab.LAB_NAMES, LAB_PATTERNS),
    "investment_grade": _matcher(vocab.INVESTMENT_GRADES),
    "market_trend": _matcher(vocab.MARKET_TRENDS),
    "fluorescence": _matcher(vocab.FLUORESCENCE_INTENSITIES),
    "fluorescence_color": _matcher(vocab.FLUORESCENCE_COLORS),
    "polish": _matcher(vocab.POLISH_SYMMETRY_GRADES),
    "symmetry": _matcher(vocab.POLISH_SYMMETRY_GRADES),
}

# Certificate fields the OCR step can return.
CERTIFICATE_FIELDS = (
    "report_number",
    "lab_name",
    "gem_type",
    "variety",
    "weight",
    "dimensions",
    "shape_cut",
    "color",
    "clarity",
    "origin",
    "treatments",
    "certificate_date",
    "additional_comments",
)


@dataclass
class FieldMatch:
    field: str
    original: str
    matched: str
    confidence: str


def _confidence(original: str, matched: str) -> str:
    score = similarity(original.lower(), matched.lower())
    if score >= 0.8:
        return "high"
    if score >= 0.6:
        return "medium"
    return "low"


def match_with_summary(metadata: ExtractedMetadata):
    """Return (draft updates, list of FieldMatch for values that were changed)."""
    populated = metadata.populated()
    updates: Dict[str, Any] = {}
    summary: List[FieldMatch] = []

    for name in CERTIFICATE_FIELDS:
        if name not in populated:
            continue
        value = populated[name]
        if name == "weight":
            if value.value > 0:
                updates[name] = {"value": value.value, "unit": value.unit or "ct"}
            continue
        if name == "dimensions":
            if value.length or value.width or value.height:
                updates[name] = value.model_dump()
            continue

        value = str(value).strip()
        matcher = MATCHERS.get(name)
        matched = matcher(value) if matcher else None
        if matched and matched != value:
            summary.append(FieldMatch(field=name, original=value, matched=matched, confidence=_confidence(value, matched)))
        updates[name] = matched or value

    return updates, summary


def match_extracted_fields(metadata: ExtractedMetadata) -> Dict[str, Any]:
    updates, _ = match_with_summary(metadata)
    return updates
