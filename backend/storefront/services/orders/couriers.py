"""Courier registry used when capturing shipping details.

Tracking URLs are the courier's tracking page with the tracking id appended.
"""

from typing import NamedTuple, Optional


class Courier(NamedTuple):
    code: str
    name: str
    tracking_base_url: str


COURIERS: dict[str, Courier] = {
    courier.code: courier
    for courier in (
        Courier("tcs", "TCS Express", "https://www.tcs.com.pk/tracking?trackingNumber="),
        Courier("leopards", "Leopards Courier", "https://leopardscourier.com/track/"),
        Courier(
            "dhl",
            "DHL Express",
            "https://www.dhl.com/pk-en/home/tracking.html?tracking-id=",
        ),
        Courier("fedex", "FedEx", "https://www.fedex.com/fedextrack/?trknbr="),
        Courier("mnp", "M&P Express", "https://www.mpexpress.com/tracking?id="),
        Courier("callcourier", "Call Courier", "https://callcourier.com.pk/tracking/"),
        Courier("other", "Other Courier", ""),
    )
}


def get_courier(code: str) -> Optional[Courier]:
    return COURIERS.get(code.strip().lower())


def build_tracking_url(courier_code: str, tracking_id: str) -> Optional[str]:
    """Tracking page URL for a shipment, or None for couriers without one."""
    courier = get_courier(courier_code)
    if courier is None or not courier.tracking_base_url:
        return None
    return f"{courier.tracking_base_url}{tracking_id}"
