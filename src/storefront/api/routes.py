"""FastAPI routes for the storefront — catalogue, cart, checkout, orders and
the payment webhook."""

from fastapi import APIRouter, Header, Request, Response
from fastapi.responses import JSONResponse

from storefront.api.schemas import (
    AddToCartRequest,
    CartLineResponse,
    CheckoutRequest,
    OrderItemResponse,
    OrderResponse,
    PaymentIntentResponse,
    ProductResponse,
    ShippingQuoteResponse,
    WebhookAckResponse,
)
from storefront.api.session import attach_session_cookie, resolve_session
from storefront.cart.view import CartLine, apply_delta, get_cart
from storefront.catalogue.products import Product, get_catalogue
from storefront.checkout.payment_intent import ShippingAddress, ShippingSelection, create_payment_intent
from storefront.domain import logger
from storefront.errors import IncompleteOrderData, InvalidInput, NotFound, UpstreamFailure
from storefront.gateway import get_gateway
from storefront.order.finalization import OrderFinalizer
from storefront.order.view import get_order_view
from storefront.shipping.estimator import estimate_shipping


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        product_id=product.id,
        name=product.name,
        price_minor_units=product.price_cents,
        image_path=product.image_path,
    )


def _cart_response(lines: list[CartLine]) -> list[CartLineResponse]:
    return [
        CartLineResponse(
            product_id=line.product_id,
            quantity=line.quantity,
            name=line.name,
            price_minor_units=line.price_cents,
            image_path=line.image_path,
        )
        for line in lines
    ]


# ---------------------------------------------------------------------------
# Catalogue Router
# ---------------------------------------------------------------------------
catalogue_router = APIRouter(prefix="/products", tags=["catalogue"])


@catalogue_router.get("", response_model=list[ProductResponse])
async def list_products() -> list[ProductResponse]:
    return [_product_response(product) for product in get_catalogue().all()]


@catalogue_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = get_catalogue().get(product_id)
    if product is None:
        raise NotFound(f"Product '{product_id}' not found")
    return _product_response(product)


# ---------------------------------------------------------------------------
# Shipping Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


@shipping_router.get("/quote", response_model=ShippingQuoteResponse)
async def quote_shipping(request: Request, region: str) -> ShippingQuoteResponse:
    """Quote shipping for the current cart."""
    session = resolve_session(request)
    quote = estimate_shipping(get_cart(session.session_id if session else None), region)
    if not quote.supported:
        raise InvalidInput(f"We do not ship to '{region}' yet")
    return ShippingQuoteResponse(
        cost_minor_units=quote.cost_cents,
        zone=quote.zone,
        description=quote.description,
        weight_oz=quote.weight_oz,
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=list[CartLineResponse])
async def read_cart(request: Request, response: Response) -> list[CartLineResponse]:
    session = resolve_session(request, create=True)
    lines = get_cart(session.session_id)
    attach_session_cookie(response, session)
    return _cart_response(lines)


@cart_router.post("/add", response_model=list[CartLineResponse])
async def add_to_cart(body: AddToCartRequest, request: Request, response: Response) -> list[CartLineResponse]:
    """Apply a quantity delta to one product; negative deltas remove items."""
    session = resolve_session(request, create=True)
    lines = apply_delta(session.session_id, body.product_id, body.quantity_delta)
    attach_session_cookie(response, session)
    return _cart_response(lines)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/payment-intent", response_model=PaymentIntentResponse)
async def start_payment(body: CheckoutRequest, request: Request) -> PaymentIntentResponse:
    session = resolve_session(request)
    address = body.shipping_address
    result = create_payment_intent(
        session_id=session.session_id if session else None,
        shipping_selection=ShippingSelection(
            region=body.shipping_selection.region,
            quoted_cost=body.shipping_selection.cost,
        ),
        shipping_address=ShippingAddress(
            first_name=address.first_name,
            last_name=address.last_name,
            address=address.address,
            city=address.city,
            state=address.state,
            zip=address.zip,
            email=address.email,
            apartment=address.apartment,
            phone=address.phone,
        ),
        client_total=body.total,
    )
    return PaymentIntentResponse(
        client_secret=result.client_secret,
        payment_intent_id=result.payment_intent_id,
        amount_minor_units=result.amount_cents,
        subtotal_minor_units=result.subtotal_cents,
        shipping_minor_units=result.shipping_cents,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{payment_id}", response_model=OrderResponse)
async def get_order(payment_id: str) -> OrderResponse:
    view = get_order_view(payment_id)
    return OrderResponse(
        payment_intent_id=view["payment_intent_id"],
        status=view["status"],
        customer_email=view["customer_email"],
        customer_first_name=view["customer_first_name"],
        customer_last_name=view["customer_last_name"],
        shipping_address=view["shipping_address"],
        shipping_apartment=view["shipping_apartment"],
        shipping_city=view["shipping_city"],
        shipping_state=view["shipping_state"],
        shipping_zip=view["shipping_zip"],
        shipping_phone=view["shipping_phone"],
        shipping_zone=view["shipping_zone"],
        shipping_description=view["shipping_description"],
        subtotal_minor_units=view["subtotal_cents"],
        shipping_cost_minor_units=view["shipping_cost_cents"],
        total_minor_units=view["total_cents"],
        currency=view["currency"],
        items=[
            OrderItemResponse(
                product_id=item["product_id"],
                name=item["name"],
                image_path=item["image_path"],
                unit_price_minor_units=item["unit_price_cents"],
                quantity=item["quantity"],
                line_total_minor_units=item["line_total_cents"],
            )
            for item in view["items"]
        ],
        created_at=view["created_at"],
    )


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhook", tags=["webhook"])


@webhook_router.post("/payment", response_model=WebhookAckResponse)
async def payment_webhook(request: Request, stripe_signature: str = Header(default="")):
    """Receive a payment notification from the payment provider.

    Only failures a redelivery could fix answer with a 5xx; everything else
    is acknowledged so the provider stops retrying.
    """
    payload = await request.body()
    event = get_gateway().construct_event(payload, stripe_signature)

    try:
        result = OrderFinalizer().handle(event)
    except IncompleteOrderData as exc:
        logger.error(
            "webhook.incomplete_order_data",
            event_id=event.id,
            payment_intent_id=event.object_id,
            missing_fields=exc.missing_fields,
        )
        return WebhookAckResponse()
    except UpstreamFailure as exc:
        if not exc.retryable:
            logger.error("webhook.failed", event_id=event.id, error=exc.message, retryable=False)
            return WebhookAckResponse()
        return JSONResponse(status_code=500, content=exc.to_dict())
    except Exception:
        logger.exception("webhook.unexpected_error", event_id=event.id, event_type=event.type)
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed", "code": "internal_error"})

    logger.debug("webhook.handled", event_id=event.id, outcome=result.outcome.value, stage=result.stage.value)
    return WebhookAckResponse()
