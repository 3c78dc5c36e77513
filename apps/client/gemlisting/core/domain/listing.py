from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from gemlisting.core.domain.media import LocalFile


class Step(IntEnum):
    CERTIFICATE = 1
    DETAILS = 2
    MEDIA = 3
    REVIEW = 4


class ListingType(str, Enum):
    direct_sale = "direct-sale"
    auction = "auction"


class WizardMode(str, Enum):
    create = "create"
    edit = "edit"
    admin = "admin"


AUCTION_DURATIONS = ("3 days", "5 days", "7 days", "10 days", "14 days")
SHIPPING_METHODS = ("seller-fulfilled", "ishq-gems-logistics", "in-person-via-ishq-gems")

ADVANCED_FIELDS = (
    "fluorescence",
    "fluorescence_color",
    "polish",
    "symmetry",
    "girdle",
    "culet",
    "depth",
    "table",
    "crown_angle",
    "pavilion_angle",
    "crown_height",
    "pavilion_depth",
    "star_length",
    "lower_half",
    "price_per_carat",
    "market_trend",
    "investment_grade",
    "rapnet_price",
    "discount",
    "laser_inscription",
    "memo",
    "consignment",
    "stock_number",
)


@dataclass
class Weight:
    value: float = 0.0
    unit: str = "ct"


@dataclass
class Dimensions:
    length: str = ""
    width: str = ""
    height: str = ""
    unit: str = "mm"

    def is_set(self) -> bool:
        return bool(self.length or self.width or self.height)


@dataclass
class ListingDraft:
    # Step 1
    certificate: Optional[LocalFile] = None

    # Step 2: certificate identity
    report_number: str = ""
    lab_name: str = ""
    gem_type: str = ""
    variety: str = ""
    weight: Weight = field(default_factory=Weight)
    dimensions: Dimensions = field(default_factory=Dimensions)
    shape_cut: str = ""
    color: str = ""
    clarity: str = ""
    origin: str = ""
    treatments: str = ""
    certificate_date: str = ""
    additional_comments: str = ""

    # Step 2: listing economics. Amounts stay as entered until submission.
    listing_type: str = ""
    price: str = ""
    starting_bid: str = ""
    reserve_price: str = ""
    auction_duration: str = ""
    shipping_method: str = "seller-fulfilled"

    show_advanced: bool = False
    fluorescence: str = ""
    fluorescence_color: str = ""
    polish: str = ""
    symmetry: str = ""
    girdle: str = ""
    culet: str = ""
    depth: str = ""
    table: str = ""
    crown_angle: str = ""
    pavilion_angle: str = ""
    crown_height: str = ""
    pavilion_depth: str = ""
    star_length: str = ""
    lower_half: str = ""
    price_per_carat: str = ""
    market_trend: str = ""
    investment_grade: str = ""
    rapnet_price: str = ""
    discount: str = ""
    laser_inscription: str = ""
    memo: bool = False
    consignment: bool = False
    stock_number: str = ""

    # Step 3
    images: List[LocalFile] = field(default_factory=list)
    videos: List[LocalFile] = field(default_factory=list)

    # Step 4
    confirm_accuracy: bool = False

    def apply(self, updates: Dict[str, Any]) -> None:
        """Apply a set of field updates in one go; unknown names are rejected up front."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(updates) - known)
        if unknown:
            raise AttributeError(f"Unknown listing fields: {', '.join(unknown)}")
        for name, value in updates.items():
            if name == "weight" and isinstance(value, dict):
                value = Weight(**value)
            elif name == "dimensions" and isinstance(value, dict):
                value = Dimensions(**value)
            setattr(self, name, value)

    @classmethod
    def from_initial_data(cls, data: Dict[str, Any]) -> "ListingDraft":
        """Build a draft from a gem record as returned by the backend (camelCase)."""

        def text(key: str) -> str:
            value = data.get(key)
            return "" if value is None else str(value)

        weight = data.get("weight") or {}
        dims = data.get("dimensions") or {}
        draft = cls(
            report_number=text("reportNumber"),
            lab_name=text("labName"),
            gem_type=text("gemType"),
            variety=text("variety"),
            weight=Weight(value=float(weight.get("value") or 0), unit=weight.get("unit") or "ct"),
            dimensions=Dimensions(
                length=str(dims.get("length") or ""),
                width=str(dims.get("width") or ""),
                height=str(dims.get("height") or ""),
                unit=dims.get("unit") or "mm",
            ),
            shape_cut=text("shapeCut"),
            color=text("color"),
            clarity=text("clarity"),
            origin=text("origin"),
            treatments=text("treatments"),
            certificate_date=text("certificateDate"),
            additional_comments=text("additionalComments"),
            listing_type=text("listingType"),
            price=text("price"),
            starting_bid=text("startingBid"),
            reserve_price=text("reservePrice"),
            auction_duration=text("auctionDuration"),
            shipping_method=text("shippingMethod") or "seller-fulfilled",
            fluorescence=text("fluorescence"),
            fluorescence_color=text("fluorescenceColor"),
            polish=text("polish"),
            symmetry=text("symmetry"),
            girdle=text("girdle"),
            culet=text("culet"),
            depth=text("depth"),
            table=text("table"),
            crown_angle=text("crownAngle"),
            pavilion_angle=text("pavilionAngle"),
            crown_height=text("crownHeight"),
            pavilion_depth=text("pavilionDepth"),
            star_length=text("starLength"),
            lower_half=text("lowerHalf"),
            price_per_carat=text("pricePerCarat"),
            market_trend=text("marketTrend"),
            investment_grade=text("investmentGrade"),
            rapnet_price=text("rapnetPrice"),
            discount=text("discount"),
            laser_inscription=text("laserInscription"),
            memo=bool(data.get("memo")),
            consignment=bool(data.get("consignment")),
            stock_number=text("stockNumber"),
        )
        draft.show_advanced = any(
            data.get(key)
            for key in ("fluorescence", "polish", "symmetry", "pricePerCarat", "marketTrend", "investmentGrade")
        )
        return draft
