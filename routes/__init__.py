from .health import health_bp
from .bookings import bookings_bp
from .dietitians import dietitians_bp
from .subscriptions import subscriptions_bp
