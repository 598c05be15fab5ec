"""Dashboard service - Per-role summaries for providers, customers and admins"""

import logging
from datetime import timedelta
from typing import Callable

from sqlalchemy.orm import Session

from ...models import User
from ...shared.time_utils import utc_now
from ..bookings.repository import BookingRepository
from ..bookings.schemas import BookingResponse
from ..providers.repository import ProviderRepository
from ..providers.schemas import ProviderResponse
from ..reviews.rating_aggregator import round_rating
from ..reviews.repository import ReviewRepository
from ..reviews.schemas import ReviewResponse
from .repository import DashboardRepository

logger = logging.getLogger(__name__)

UPCOMING_WINDOW_DAYS = 7
REVENUE_WINDOW_DAYS = 365
HISTORY_WINDOW_DAYS = 180


def _bookings_data(bookings) -> list[dict]:
    return [BookingResponse.from_booking(b).model_dump() for b in bookings]


def _money(value) -> float:
    return round(float(value or 0), 2)


class DashboardService:
    """Builds dashboard payloads from database aggregates"""

    def __init__(self, db: Session, clock: Callable = utc_now):
        self.db = db
        self.clock = clock
        self.repo = DashboardRepository()
        self.bookings = BookingRepository()

    def _status_totals(self, **scope) -> dict[str, tuple[int, float]]:
        """status -> (bookings, revenue)"""
        return {
            row.status: (int(row.bookings), _money(row.revenue))
            for row in self.bookings.get_status_stats(self.db, **scope)
        }

    def provider_dashboard(self, provider: User) -> dict:
        now = self.clock()
        today = now.date()
        totals = self._status_totals(provider_id=provider.id)

        def count(status: str) -> int:
            return totals.get(status, (0, 0.0))[0]

        service_stats = self.repo.get_provider_service_stats(self.db, provider.id)
        recent_reviews, _ = ReviewRepository.list_active_reviews(self.db, provider_id=provider.id, limit=5)
        monthly = self.bookings.get_monthly_stats(
            self.db, now - timedelta(days=REVENUE_WINDOW_DAYS), provider_id=provider.id, status="completed"
        )

        logger.info(f"📊 Provider dashboard built for {provider.id}")
        return {
            "stats": {
                "totalPending": count("pending"),
                "totalConfirmed": count("confirmed"),
                "totalCompleted": count("completed"),
                "totalCancelled": count("cancelled"),
                "totalRevenue": totals.get("completed", (0, 0.0))[1],
            },
            "serviceData": {
                "totalServices": int(service_stats.services),
                "averageRating": round_rating(service_stats.average_rating),
                "totalReviews": int(service_stats.reviews),
            },
            "recentBookings": _bookings_data(
                self.bookings.list_recent_bookings(self.db, provider_id=provider.id, limit=5)
            ),
            "upcomingBookings": _bookings_data(
                self.bookings.list_upcoming_bookings(
                    self.db, today, today + timedelta(days=UPCOMING_WINDOW_DAYS), provider_id=provider.id, limit=10
                )
            ),
            "monthlyRevenue": [
                {
                    "year": int(row.year),
                    "month": int(row.month),
                    "revenue": _money(row.revenue),
                    "bookings": row.bookings,
                }
                for row in monthly
            ],
            "recentReviews": [ReviewResponse.from_review(r).model_dump() for r in recent_reviews],
        }

    def customer_dashboard(self, customer: User) -> dict:
        now = self.clock()
        totals = self._status_totals(customer_id=customer.id)

        def count(*statuses: str) -> int:
            return sum(totals.get(status, (0, 0.0))[0] for status in statuses)

        history = self.bookings.get_monthly_stats(
            self.db, now - timedelta(days=HISTORY_WINDOW_DAYS), customer_id=customer.id
        )

        logger.info(f"📊 Customer dashboard built for {customer.id}")
        return {
            "stats": {
                "totalBookings": sum(bookings for bookings, _ in totals.values()),
                "upcomingBookings": count("pending", "confirmed"),
                "completedBookings": count("completed"),
                "cancelledBookings": count("cancelled"),
            },
            "recentBookings": _bookings_data(
                self.bookings.list_recent_bookings(self.db, customer_id=customer.id, limit=5)
            ),
            "upcomingBookings": _bookings_data(
                self.bookings.list_upcoming_bookings(self.db, now.date(), customer_id=customer.id, limit=10)
            ),
            "pendingReviews": _bookings_data(self.repo.list_bookings_awaiting_review(self.db, customer.id)),
            "favoriteCategories": [
                {"id": row.id, "name": row.name, "count": row.bookings}
                for row in self.repo.get_favorite_categories(self.db, customer.id)
            ],
            "bookingHistory": [
                {"year": int(row.year), "month": int(row.month), "bookings": row.bookings} for row in history
            ],
        }

    def admin_dashboard(self) -> dict:
        now = self.clock()
        roles = self.repo.get_user_role_counts(self.db)
        totals = self._status_totals()
        service_totals = self.repo.get_service_totals(self.db)
        top_providers, _ = ProviderRepository.list_providers(self.db, sort="rating", limit=5)

        bookings = {"total": sum(bookings for bookings, _ in totals.values())}
        for status in ("pending", "confirmed", "completed", "cancelled"):
            bookings[status] = 0
        for status, (count, _) in totals.items():
            bookings[status] = count
        bookings["totalRevenue"] = totals.get("completed", (0, 0.0))[1]

        logger.info("📊 Admin dashboard built")
        return {
            "users": {
                "totalUsers": sum(roles.values()),
                "totalProviders": roles.get("provider", 0),
                "totalCustomers": roles.get("user", 0),
                "totalAdmins": roles.get("admin", 0),
            },
            "bookings": bookings,
            "services": {
                "total": int(service_totals.total),
                "active": int(service_totals.active),
                "approved": int(service_totals.approved),
            },
            "recentBookings": _bookings_data(self.bookings.list_recent_bookings(self.db, limit=10)),
            "monthlyGrowth": [
                {"year": int(row.year), "month": int(row.month), "role": row.role, "count": row.users}
                for row in self.repo.get_monthly_signups(self.db, now - timedelta(days=REVENUE_WINDOW_DAYS))
            ],
            "pendingServices": int(self.repo.count_pending_approvals(self.db)),
            "topProviders": [ProviderResponse.from_user(p).model_dump() for p in top_providers],
        }
