'''
FastAPI application for the hotel booking frontend.

The app holds the customer-side page state and talks to the booking backend.

Available endpoints:
- /auth: log in, register, log out, current session.
- /rooms: browse room types and check availability.
- /booking: the booking wizard (details, guest info, review, checkout).
- /my-bookings: list, filter and cancel the user's bookings.
- /payment: pay for a booking with a card or a saved card.
'''

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from Backend.client import HotelBackend
from Backend.config import Settings, load_settings
from Hotels.my_bookings import BookingsList
from Users.session import SessionContext, SessionStore

# routers
from api.auth_routes import auth_router
from api.booking_routes import booking_router
from api.my_bookings_routes import my_bookings_router
from api.payment_routes import payment_router
from api.room_routes import room_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup ---
        session = SessionContext(SessionStore(settings.session_file))
        backend = HotelBackend(settings.api_url, session=session, timeout=settings.timeout)
        app.state.settings = settings
        app.state.session = session
        app.state.backend = backend
        app.state.drafts = {}
        app.state.bookings_list = BookingsList(backend)
        yield
        # --- Shutdown ---
        for wizard in app.state.drafts.values():
            wizard.close()
        await backend.aclose()

    app = FastAPI(title="Hotel Booking Frontend", version="1.0.0", lifespan=lifespan)

    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(room_router, prefix="/rooms", tags=["Rooms"])
    app.include_router(booking_router, prefix="/booking", tags=["Booking"])
    app.include_router(my_bookings_router, prefix="/my-bookings", tags=["My bookings"])
    app.include_router(payment_router, prefix="/payment", tags=["Payment"])

    @app.get("/")
    async def root():
        return {"message": "Welcome to the Hotel Booking frontend"}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:create_app", factory=True, host="localhost", port=8000, reload=True)
