"""DeliveryFeeResolver — turns a customer location or postal zone into a quote.

Every external call is stamped with a generation number taken when the
triggering input changes. A result that comes back after a newer input has
been submitted is dropped, so the applied quote always belongs to the most
recent input regardless of completion order.
"""

import asyncio

import structlog
from protean.exceptions import ValidationError

from storefront.config import get_settings
from storefront.delivery.pricing import get_pricing
from storefront.delivery.pricing.port import DeliveryPricingPort, FeeCalculationError, FeeErrorCode
from storefront.delivery.quote import DeliveryQuote, PostalOption, parse_max_distance
from storefront.stores import StoreSettings

logger = structlog.get_logger(__name__)


def classify_fee_error(error: FeeCalculationError) -> DeliveryQuote:
    if error.code == FeeErrorCode.OUTSIDE_DELIVERY_AREA:
        return DeliveryQuote.outside_area(parse_max_distance(error.message), reason=error.message)
    if error.code == FeeErrorCode.DELIVERY_NOT_AVAILABLE:
        return DeliveryQuote.unavailable(error.message)
    return DeliveryQuote.calculation_failed(error.message)


class DeliveryFeeResolver:
    def __init__(
        self,
        store: StoreSettings,
        pricing: DeliveryPricingPort | None = None,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.pricing = pricing or get_pricing()
        self.timeout = timeout if timeout is not None else get_settings().external_timeout_seconds
        self.generation = 0
        self.quote: DeliveryQuote | None = None
        self.location: tuple[float, float] | None = None
        self.postal_zone: tuple[str, str] | None = None
        self.postal_choices: list[PostalOption] = []
        self.postal_selection: PostalOption | None = None

    @property
    def fee(self) -> float:
        """Fee to charge: the quoted amount, 0 on any error, the tenant default before any quote."""
        if self.quote is None:
            return self.store.delivery_fee
        return self.quote.amount

    @property
    def has_postal_selection(self) -> bool:
        return self.postal_selection is not None

    def _stamp(self) -> int:
        self.generation += 1
        return self.generation

    def _is_current(self, generation: int, **context) -> bool:
        if generation == self.generation:
            return True
        logger.debug("stale_delivery_result_discarded", generation=generation, current=self.generation, **context)
        return False

    # -------------------------------------------------------------------
    # Geolocation mode
    # -------------------------------------------------------------------
    async def resolve(self, latitude: float, longitude: float) -> DeliveryQuote | None:
        """Quote delivery to the given coordinates.

        Returns the applied quote, or ``None`` when a newer input superseded
        this call while it was in flight.
        """
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValidationError({"coordinates": ["Latitude or longitude out of range"]})

        generation = self._stamp()
        self.location = (latitude, longitude)
        quote = await self._calculate(latitude, longitude)

        if not self._is_current(generation, business_id=self.store.business_id):
            return None
        self.quote = quote
        logger.info(
            "delivery_quote_resolved",
            business_id=self.store.business_id,
            status=quote.status.value,
            fee=quote.amount,
            zone=quote.zone,
        )
        return quote

    async def _calculate(self, latitude: float, longitude: float) -> DeliveryQuote:
        try:
            result = await asyncio.wait_for(
                self.pricing.calculate_fee(self.store.business_id, latitude, longitude),
                timeout=self.timeout,
            )
        except TimeoutError:
            logger.warning("delivery_fee_timeout", business_id=self.store.business_id, timeout=self.timeout)
            return DeliveryQuote.calculation_failed("Delivery fee calculation timed out")
        except FeeCalculationError as exc:
            return classify_fee_error(exc)
        except Exception as exc:
            logger.warning("delivery_fee_failed", business_id=self.store.business_id, error=str(exc))
            return DeliveryQuote.calculation_failed("Failed to calculate delivery fee")

        if result.fee < 0:
            return DeliveryQuote.calculation_failed("Invalid delivery fee returned")
        return DeliveryQuote.fee(result.fee, zone=result.zone, distance=result.distance)

    # -------------------------------------------------------------------
    # Postal-zone mode
    # -------------------------------------------------------------------
    async def postal_options(self, country: str, city: str) -> list[PostalOption]:
        """Fetch carrier options for a country/city.

        A new zone drops the previous selection and puts the fee back to the
        tenant default until an option is chosen.
        """
        zone = (country.strip().upper(), city.strip())
        if zone != self.postal_zone:
            self.postal_zone = zone
            self.postal_choices = []
            self.postal_selection = None
            self.quote = None

        generation = self._stamp()
        try:
            options = await asyncio.wait_for(
                self.pricing.postal_options(self.store.business_id, *zone),
                timeout=self.timeout,
            )
        except Exception as exc:
            logger.warning("postal_options_failed", business_id=self.store.business_id, zone=zone, error=str(exc))
            if self._is_current(generation, zone=zone):
                self.postal_choices = []
                self.quote = DeliveryQuote.calculation_failed("Failed to load postal delivery options")
            return []

        if not self._is_current(generation, zone=zone):
            return list(self.postal_choices)
        self.postal_choices = sorted(options, key=lambda o: o.price)
        if not self.postal_choices:
            self.quote = DeliveryQuote.unavailable("No postal delivery to this city")
        return list(self.postal_choices)

    def select_postal(self, option_id: str) -> DeliveryQuote:
        option = next((o for o in self.postal_choices if o.id == option_id), None)
        if option is None:
            raise ValidationError({"postal_option": ["Unknown postal option"]})
        self.postal_selection = option
        self.quote = DeliveryQuote.fee(option.price, zone=option.carrier_name)
        logger.info("postal_option_selected", business_id=self.store.business_id, option=option.id, fee=option.price)
        return self.quote

    def reset(self) -> None:
        """Forget every delivery input; in-flight results are invalidated."""
        self._stamp()
        self.quote = None
        self.location = None
        self.postal_zone = None
        self.postal_choices = []
        self.postal_selection = None
