import logging
import os
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

import catalog
import config
import database
import orders
import reports
import users
from auth import create_access_token, get_current_user, require_roles
from errors import AppError, Forbidden, InvalidSelection
from schemas import PaymentMethod, ServiceDefinition
from status_policy import OrderStatus, Role

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if database.db is not None:
        users.ensure_indexes()
    yield


app = FastAPI(title="Laundromat Orders API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API = "/api/v1"

admin_only = require_roles(Role.admin.value)
staff_only = require_roles(Role.admin.value, Role.operator.value)


@app.exception_handler(AppError)
def app_error_handler(request: Request, exc: AppError):
    body: Dict[str, Any] = {"detail": exc.message, "code": exc.code}
    if exc.details is not None:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "code": "internal_error"})


# ============ Request models ==========
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{7,15}$")
    address: Optional[str] = Field(None, min_length=5, max_length=200)


class AdminCreateUserRequest(RegisterRequest):
    role: Role = Role.customer


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{7,15}$")
    address: Optional[str] = Field(None, min_length=5, max_length=200)


class RoleUpdate(BaseModel):
    role: Role


class ActiveUpdate(BaseModel):
    active: bool


class QuoteRequest(BaseModel):
    detail: Dict[str, Any] = {}


class CreateOrderRequest(BaseModel):
    service_id: str
    detail: Dict[str, Any] = {}
    observations: Optional[str] = Field(None, max_length=500)
    customer_id: Optional[str] = Field(None, description="Admins only: place the order for this customer")


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    observations: Optional[str] = Field(None, max_length=500)
    version: Optional[int] = Field(None, ge=1, description="Reject the change unless the order is still at this version")


class PaymentRequest(BaseModel):
    method: PaymentMethod
    amount: float = Field(..., gt=0)
    observations: Optional[str] = Field(None, max_length=500)


# ===================== Public Endpoints =====================
@app.get("/")
def root():
    return {"message": "Laundromat Orders API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
        else:
            response["database"] = "⚠️  Available but not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
    return response


# ===================== Auth =====================
@app.post(f"{API}/auth/register", status_code=201)
def register(payload: RegisterRequest):
    user = users.register_user(payload.name, payload.email, payload.password, payload.phone, payload.address)
    return {"data": user}


@app.post(f"{API}/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest):
    user = users.authenticate(payload.email, payload.password)
    return LoginResponse(access_token=create_access_token(user), user=user)


# ===================== Users =====================
@app.get(f"{API}/users/me")
def read_me(current_user: dict = Depends(get_current_user)):
    return {"data": current_user}


@app.patch(f"{API}/users/me")
def update_me(payload: ProfileUpdate, current_user: dict = Depends(get_current_user)):
    return {"data": users.update_profile(current_user["id"], payload.model_dump(exclude_unset=True))}


@app.get(f"{API}/users")
def list_users(role: Optional[Role] = None, _: dict = Depends(admin_only)):
    return {"data": users.list_users(role.value if role else None)}


@app.post(f"{API}/users", status_code=201)
def admin_create_user(payload: AdminCreateUserRequest, _: dict = Depends(admin_only)):
    user = users.create_user(payload.name, payload.email, payload.password, payload.role.value, payload.phone, payload.address)
    return {"data": user}


@app.get(f"{API}/users/{{user_id}}")
def get_user(user_id: str, _: dict = Depends(admin_only)):
    user = users.get_user(user_id)
    user.pop("password_hash", None)
    return {"data": user}


@app.patch(f"{API}/users/{{user_id}}/role")
def change_user_role(user_id: str, payload: RoleUpdate, current_user: dict = Depends(admin_only)):
    return {"data": users.change_role(current_user, user_id, payload.role.value)}


@app.patch(f"{API}/users/{{user_id}}/active")
def change_user_active(user_id: str, payload: ActiveUpdate, current_user: dict = Depends(admin_only)):
    return {"data": users.set_active(current_user, user_id, payload.active)}


# ===================== Services =====================
@app.get(f"{API}/services")
def list_services():
    return {"data": catalog.list_services()}


@app.get(f"{API}/services/all")
def list_all_services(_: dict = Depends(admin_only)):
    return {"data": catalog.list_services(include_inactive=True)}


@app.get(f"{API}/services/{{service_id}}")
def get_service(service_id: str):
    return {"data": catalog.get_service(service_id)}


@app.post(f"{API}/services/{{service_id}}/quote")
def quote_service(service_id: str, payload: QuoteRequest):
    return {"data": orders.quote(service_id, payload.detail)}


@app.post(f"{API}/services", status_code=201)
def create_service(payload: ServiceDefinition, _: dict = Depends(admin_only)):
    return {"data": catalog.create_service(payload.root)}


@app.put(f"{API}/services/{{service_id}}")
def update_service(service_id: str, payload: ServiceDefinition, _: dict = Depends(admin_only)):
    return {"data": catalog.update_service(service_id, payload.root)}


@app.patch(f"{API}/services/{{service_id}}/active")
def change_service_active(service_id: str, payload: ActiveUpdate, _: dict = Depends(admin_only)):
    return {"data": catalog.set_active(service_id, payload.active)}


# ===================== Orders =====================
@app.post(f"{API}/orders", status_code=201)
def create_order(payload: CreateOrderRequest, current_user: dict = Depends(get_current_user)):
    customer_id = current_user["id"]
    if payload.customer_id and payload.customer_id != current_user["id"]:
        if current_user["role"] != Role.admin.value:
            raise Forbidden("Only administrators can place orders for other customers.")
        customer = users.get_user(payload.customer_id)
        if customer.get("role") != Role.customer.value:
            raise InvalidSelection("Orders can only be placed for customer accounts.")
        customer_id = customer["id"]
    order = orders.create_order(customer_id, payload.service_id, payload.detail, payload.observations)
    return {"data": order}


@app.get(f"{API}/orders")
def list_my_orders(current_user: dict = Depends(get_current_user)):
    return {"data": orders.list_customer_orders(current_user["id"])}


@app.get(f"{API}/orders/all")
def list_all_orders(
    status: Optional[OrderStatus] = None,
    customer_id: Optional[str] = None,
    search: Optional[str] = Query(None, min_length=2),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: dict = Depends(staff_only),
):
    return orders.list_orders(status.value if status else None, customer_id, search, page, limit)


@app.get(f"{API}/orders/{{order_id}}")
def get_order(order_id: str, current_user: dict = Depends(get_current_user)):
    return {"data": orders.get_order(order_id, current_user)}


@app.patch(f"{API}/orders/{{order_id}}/status")
def update_order_status(order_id: str, payload: UpdateOrderStatusRequest, current_user: dict = Depends(get_current_user)):
    order = orders.update_status(order_id, payload.status.value, current_user, payload.observations, payload.version)
    return {"data": order}


@app.post(f"{API}/orders/{{order_id}}/cancel")
def cancel_order(order_id: str, current_user: dict = Depends(get_current_user)):
    return {"data": orders.cancel_order(order_id, current_user)}


@app.post(f"{API}/orders/{{order_id}}/payment")
def register_payment(order_id: str, payload: PaymentRequest, _: dict = Depends(staff_only)):
    return {"data": orders.register_payment(order_id, payload.method, payload.amount, payload.observations)}


@app.delete(f"{API}/orders/{{order_id}}")
def delete_order(order_id: str, _: dict = Depends(admin_only)):
    order = orders.delete_order(order_id)
    return {"data": {"id": order["id"], "deleted": True}}


# ===================== Reports =====================
def _active_orders() -> List[dict]:
    return database.get_documents(orders.COLLECTION, {"active": True})


@app.get(f"{API}/reports/summary")
def report_summary(_: dict = Depends(admin_only)):
    all_users = database.get_documents(users.COLLECTION, {"role": Role.customer.value})
    total_services = database.count_documents(catalog.COLLECTION)
    return {"data": reports.summary(_active_orders(), all_users, total_services)}


@app.get(f"{API}/reports/orders-by-status")
def report_orders_by_status(date_from: Optional[date] = None, date_to: Optional[date] = None, _: dict = Depends(admin_only)):
    return {"data": reports.orders_by_status(_active_orders(), date_from, date_to)}


@app.get(f"{API}/reports/revenue")
def report_revenue(date_from: Optional[date] = None, date_to: Optional[date] = None, _: dict = Depends(admin_only)):
    return {"data": reports.revenue(_active_orders(), date_from, date_to)}


@app.get(f"{API}/reports/popular-services")
def report_popular_services(limit: int = Query(10, ge=1, le=50), _: dict = Depends(admin_only)):
    return {"data": reports.popular_services(_active_orders(), limit)}


@app.get(f"{API}/reports/clients")
def report_clients(_: dict = Depends(admin_only)):
    customers = database.get_documents(users.COLLECTION, {"role": Role.customer.value})
    stats = reports.client_stats(
        _active_orders(),
        customers,
        unknown_name=config.REPORT_UNKNOWN_NAME,
        unknown_email=config.REPORT_UNKNOWN_EMAIL,
    )
    return {"data": stats}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
