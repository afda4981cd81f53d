from .evmtypes import TypeField

DEFAULT_DOMAIN_NAME = "Nifty Exchange"
DEFAULT_DOMAIN_VERSION = "2.0"

ORDER_PRIMARY_TYPE = "Order"

# Field order defines the on-chain order hash, keep it in sync with LibOrder.
ORDER_FIELDS = (
    TypeField(name="makerAddress", type="address"),
    TypeField(name="takerAddress", type="address"),
    TypeField(name="royaltiesAddress", type="address"),
    TypeField(name="senderAddress", type="address"),
    TypeField(name="makerAssetAmount", type="uint256"),
    TypeField(name="takerAssetAmount", type="uint256"),
    TypeField(name="royaltiesAmount", type="uint256"),
    TypeField(name="expirationTimeSeconds", type="uint256"),
    TypeField(name="salt", type="uint256"),
    TypeField(name="makerAssetData", type="bytes"),
    TypeField(name="takerAssetData", type="bytes"),
)

ORDER_TYPES = {
    ORDER_PRIMARY_TYPE: ORDER_FIELDS,
}
