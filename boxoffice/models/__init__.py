from boxoffice.models.room import Room
from boxoffice.models.customer import Customer
from boxoffice.models.showtime import Showtime
from boxoffice.models.booking import Booking, BookingStatus, Ticket, TicketType
from boxoffice.models.promotion import Promotion
