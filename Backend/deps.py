"""FastAPI dependency providers; everything is created once in the app lifespan."""
from fastapi import Request

from Backend.client import HotelBackend
from Hotels.my_bookings import BookingsList
from Hotels.wizard import WizardController
from Users.session import SessionContext


def get_backend(request: Request) -> HotelBackend:
    return request.app.state.backend


def get_session(request: Request) -> SessionContext:
    return request.app.state.session


def get_drafts(request: Request) -> dict[str, WizardController]:
    '''Open booking wizards keyed by draft id.'''
    return request.app.state.drafts


def get_bookings_list(request: Request) -> BookingsList:
    return request.app.state.bookings_list
