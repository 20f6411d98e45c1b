from flask import Blueprint

reservations = Blueprint('reservations', __name__)

from venue.reservations import routes  # noqa: F401, E402
from venue.reservations import models  # noqa: F401, E402, registers Reservation/Addon/Payment with SQLAlchemy
