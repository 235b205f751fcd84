from rentacar.models.rental import Rental
from rentacar.models.payment import Payment

__all__ = ["Rental", "Payment"]
