from fastapi import APIRouter

# Public - showtimes & seat availability
from boxoffice.api.v1.public.showtimes import showtime_router, movie_showtimes_router

# Public - bookings & tickets
from boxoffice.api.v1.public.bookings import router as bookings_router, customer_router
from boxoffice.api.v1.public.tickets import router as tickets_router, booking_tickets_router

# Public - promotion codes
from boxoffice.api.v1.public.promotions import router as public_promotions_router

# Admin
from boxoffice.api.v1.admin.showtimes import router as showtimes_router, room_schedule_router
from boxoffice.api.v1.admin.promotions import router as promotions_router

api_router = APIRouter()

# --- Public: showtimes ---
api_router.include_router(showtime_router)
api_router.include_router(movie_showtimes_router)

# --- Public: bookings (adds /{booking_id}/tickets to /bookings prefix) ---
api_router.include_router(bookings_router)
api_router.include_router(booking_tickets_router)
api_router.include_router(customer_router)
api_router.include_router(tickets_router)

# --- Public: promotions ---
api_router.include_router(public_promotions_router)

# --- Admin ---
api_router.include_router(showtimes_router)
api_router.include_router(room_schedule_router)
api_router.include_router(promotions_router)
