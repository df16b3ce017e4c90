import pytest

from fulfillment.carrier.fake_adapter import FakeCarrier
from fulfillment.carrier.models import Address, CarrierConfig, CarrierType, Parcel, ParcelDimensions
from fulfillment.config import get_settings
from fulfillment.fulfillment.creation import SalesOrder, SalesOrderLine


@pytest.fixture(autouse=True)
def _reset_fake_carrier():
    FakeCarrier.reset()
    yield
    FakeCarrier.reset()


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sales_order():
    return SalesOrder(
        id="ord-001",
        items=(
            SalesOrderLine(id="oi-1", product_id="prod-1", product_name="Widget", quantity=2, location="A-1-1"),
            SalesOrderLine(id="oi-2", product_id="prod-2", product_name="Gadget", quantity=1, location="B-2-1"),
        ),
    )


@pytest.fixture
def origin():
    return Address(
        name="Main Warehouse",
        street1="100 Industrial Way",
        city="Los Angeles",
        state="CA",
        postal_code="90001",
        country="US",
    )


@pytest.fixture
def destination():
    return Address(
        name="Jane Doe",
        street1="42 Elm St",
        city="Dallas",
        state="TX",
        postal_code="75201",
        country="US",
    )


@pytest.fixture
def parcel():
    """2 lb box, 10x8x6 in: 4 lb dimensional at divisor 139, 3 lb at 166."""
    return Parcel(weight=2, dimensions=ParcelDimensions(length=10, width=8, height=6))


@pytest.fixture
def carrier_configs():
    return [
        CarrierConfig(id="cfg-fedex", carrier=CarrierType.FEDEX, name="FedEx"),
        CarrierConfig(id="cfg-ups", carrier=CarrierType.UPS, name="UPS"),
        CarrierConfig(id="cfg-dhl", carrier=CarrierType.DHL, name="DHL"),
        CarrierConfig(id="cfg-usps", carrier=CarrierType.USPS, name="USPS"),
    ]
