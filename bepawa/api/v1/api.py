from fastapi import APIRouter

from bepawa.core.exceptions import ErrorResponse

from bepawa.api.v1.appointments import routes as appointments
from bepawa.api.v1.audit import routes as audit
from bepawa.api.v1.auth import routes as auth
from bepawa.api.v1.cart import routes as cart
from bepawa.api.v1.categories import routes as categories
from bepawa.api.v1.credit import routes as credit
from bepawa.api.v1.customers import routes as customers
from bepawa.api.v1.finance import routes as finance
from bepawa.api.v1.notifications import routes as notifications
from bepawa.api.v1.orders import routes as orders
from bepawa.api.v1.pos import routes as pos
from bepawa.api.v1.prescriptions import routes as prescriptions
from bepawa.api.v1.procurement import routes as procurement
from bepawa.api.v1.products import routes as products
from bepawa.api.v1.storage import routes as storage

# Every domain error is rendered with the same body
api_router = APIRouter(responses={
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 422, 500, 503)
})
api_router.include_router(auth.router)
api_router.include_router(products.router)
api_router.include_router(categories.router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)
api_router.include_router(notifications.router)
api_router.include_router(procurement.router)
api_router.include_router(credit.router)
api_router.include_router(appointments.router)
api_router.include_router(prescriptions.router)
api_router.include_router(customers.router)
api_router.include_router(finance.router)
api_router.include_router(pos.router)
api_router.include_router(audit.router)
api_router.include_router(storage.router)
