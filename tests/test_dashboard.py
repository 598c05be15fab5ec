from datetime import timedelta

import pytest

from bookly.models import Review
from bookly.shared.time_utils import utc_now


@pytest.fixture
def make_review(db_session):
    def _make_review(booking, rating=5, status="active"):
        review = Review(
            booking_id=booking.id,
            service_id=booking.service_id,
            provider_id=booking.provider_id,
            customer_id=booking.customer_id,
            rating=rating,
            content="Everything was spotless.",
            status=status,
        )
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review

    return _make_review


def test_provider_dashboard(client, headers, customer, provider, service, make_service, make_booking, make_review):
    today = utc_now().date()
    make_service(provider, title="Windows", rating_average=4.0, rating_count=1)
    make_service(provider, title="Carpets", rating_average=5.0, rating_count=3)
    make_service(provider, title="Retired", rating_average=1.0, rating_count=10, is_active=False)

    soon = make_booking(customer, service, today + timedelta(days=1), "09:00", status="confirmed")
    later_this_week = make_booking(customer, service, today + timedelta(days=5), "09:00")
    make_booking(customer, service, today + timedelta(days=10), "09:00")
    first_done = make_booking(customer, service, today - timedelta(days=3), "10:00", status="completed")
    second_done = make_booking(customer, service, today - timedelta(days=2), "11:00", status="completed")
    make_booking(customer, service, today - timedelta(days=1), "12:00", status="cancelled")
    make_review(first_done, rating=5)
    make_review(second_done, rating=1, status="removed")

    response = client.get("/api/dashboard/provider", headers=headers(provider))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["stats"] == {
        "totalPending": 2,
        "totalConfirmed": 1,
        "totalCompleted": 2,
        "totalCancelled": 1,
        "totalRevenue": 200.0,
    }
    assert data["serviceData"] == {"totalServices": 3, "averageRating": 4.5, "totalReviews": 4}
    assert [b["id"] for b in data["upcomingBookings"]] == [soon.id, later_this_week.id]
    assert len(data["recentBookings"]) == 5
    now = utc_now()
    assert data["monthlyRevenue"] == [{"year": now.year, "month": now.month, "revenue": 200.0, "bookings": 2}]
    assert [r["bookingId"] for r in data["recentReviews"]] == [first_done.id]


def test_provider_dashboard_without_activity(client, headers, provider):
    data = client.get("/api/dashboard/provider", headers=headers(provider)).json()["data"]

    assert data["stats"]["totalRevenue"] == 0.0
    assert data["serviceData"] == {"totalServices": 0, "averageRating": 0.0, "totalReviews": 0}
    assert data["recentBookings"] == []
    assert data["monthlyRevenue"] == []


def test_user_dashboard(
    client, headers, customer, provider, make_user, make_service, make_category, make_booking, make_review
):
    today = utc_now().date()
    cleaning = make_category("Cleaning")
    gardening = make_category("Gardening")
    deep_clean = make_service(provider, title="Deep Cleaning", category_id=cleaning.id)
    hedges = make_service(provider, title="Hedge Trimming", category_id=gardening.id)

    reviewed = make_booking(customer, deep_clean, today - timedelta(days=4), "09:00", status="completed")
    awaiting = make_booking(customer, deep_clean, today - timedelta(days=2), "09:00", status="completed")
    make_booking(customer, hedges, today - timedelta(days=1), "09:00", status="cancelled")
    upcoming = make_booking(customer, deep_clean, today + timedelta(days=3), "09:00")
    make_booking(make_user("user"), hedges, today + timedelta(days=3), "13:00")
    make_review(reviewed)

    response = client.get("/api/dashboard/user", headers=headers(customer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["stats"] == {
        "totalBookings": 4,
        "upcomingBookings": 1,
        "completedBookings": 2,
        "cancelledBookings": 1,
    }
    assert [b["id"] for b in data["upcomingBookings"]] == [upcoming.id]
    assert [b["id"] for b in data["pendingReviews"]] == [awaiting.id]
    assert data["favoriteCategories"] == [
        {"id": cleaning.id, "name": "Cleaning", "count": 3},
        {"id": gardening.id, "name": "Gardening", "count": 1},
    ]
    assert sum(month["bookings"] for month in data["bookingHistory"]) == 4


def test_admin_dashboard(client, headers, customer, provider, admin, make_user, service, make_service, make_booking):
    rising = make_user("provider", first_name="Rising", provider_info={"rating": 4.9, "reviewCount": 8})
    make_service(provider, title="Retired", is_active=False)
    make_service(provider, title="Awaiting Approval", is_approved=False)
    make_booking(customer, service, utc_now().date(), "09:00", status="completed")
    make_booking(customer, service, utc_now().date(), "10:00", status="no-show")
    make_booking(customer, service, utc_now().date(), "11:00")

    response = client.get("/api/dashboard/admin", headers=headers(admin))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["users"] == {"totalUsers": 4, "totalProviders": 2, "totalCustomers": 1, "totalAdmins": 1}
    assert data["bookings"] == {
        "total": 3,
        "pending": 1,
        "confirmed": 0,
        "completed": 1,
        "cancelled": 0,
        "no-show": 1,
        "totalRevenue": 100.0,
    }
    assert data["services"] == {"total": 3, "active": 2, "approved": 2}
    assert data["pendingServices"] == 1
    assert data["topProviders"][0]["id"] == rising.id
    assert len(data["recentBookings"]) == 3
    assert sum(month["count"] for month in data["monthlyGrowth"]) == 4


@pytest.mark.parametrize(
    "path,role",
    [("/api/dashboard/provider", "user"), ("/api/dashboard/user", "provider"), ("/api/dashboard/admin", "provider")],
)
def test_dashboards_are_role_restricted(client, headers, make_user, path, role):
    assert client.get(path, headers=headers(make_user(role))).status_code == 403
    assert client.get(path).status_code == 401
