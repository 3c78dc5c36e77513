from typing import Dict, Optional

from gemlisting.core.domain.listing import ListingDraft, ListingType, Step


def parse_amount(text: str) -> Optional[float]:
    try:
        return float(str(text).strip())
    except (TypeError, ValueError):
        return None


def _positive(text: str) -> bool:
    amount = parse_amount(text)
    return amount is not None and amount > 0


def _blank(value: str) -> bool:
    return not (value or "").strip()


def step_errors(draft: ListingDraft, step: int, existing_images: int = 0, edit_mode: bool = False) -> Dict[str, str]:
    """Field-level errors for one wizard step; an empty dict means the step is complete."""
    errors: Dict[str, str] = {}

    if step == Step.CERTIFICATE:
        if draft.certificate is None:
            errors["certificate"] = "Lab certificate is required"

    elif step == Step.DETAILS:
        if _blank(draft.report_number):
            errors["report_number"] = "Report number is required"
        if _blank(draft.lab_name):
            errors["lab_name"] = "Lab name is required"
        if _blank(draft.gem_type):
            errors["gem_type"] = "Gem type is required"
        if not _positive(draft.weight.value):
            errors["weight"] = "Weight must be greater than 0"
        if _blank(draft.color):
            errors["color"] = "Color is required"
        if _blank(draft.clarity):
            errors["clarity"] = "Clarity is required"
        if _blank(draft.origin):
            errors["origin"] = "Origin is required"
        if _blank(draft.listing_type):
            errors["listing_type"] = "Listing type is required"

        if draft.listing_type == ListingType.direct_sale.value and not _positive(draft.price):
            errors["price"] = "Valid price is required for direct sale"

        if draft.listing_type == ListingType.auction.value:
            if not _positive(draft.starting_bid):
                errors["starting_bid"] = "Valid starting bid is required for auction"
            if not _positive(draft.reserve_price):
                errors["reserve_price"] = "Valid reserve price is required for auction"
            starting_bid = parse_amount(draft.starting_bid)
            reserve = parse_amount(draft.reserve_price)
            if starting_bid is not None and reserve is not None and reserve < starting_bid:
                errors["reserve_price"] = "Reserve price must be greater than or equal to starting bid"
            if _blank(draft.auction_duration):
                errors["auction_duration"] = "Auction duration is required for auction"

        if _blank(draft.shipping_method):
            errors["shipping_method"] = "Shipping method is required"

    elif step == Step.MEDIA:
        has_images = bool(draft.images) or (edit_mode and existing_images > 0)
        if not has_images:
            errors["images"] = (
                "At least one image is required. You can keep existing images or upload new ones."
                if edit_mode
                else "At least one image is required"
            )

    elif step == Step.REVIEW:
        if not draft.confirm_accuracy:
            errors["confirm_accuracy"] = "Please confirm the accuracy of your information"

    else:
        errors["step"] = f"Unknown step {step}"

    return errors


def is_step_valid(draft: ListingDraft, step: int, existing_images: int = 0, edit_mode: bool = False) -> bool:
    return not step_errors(draft, step, existing_images=existing_images, edit_mode=edit_mode)
