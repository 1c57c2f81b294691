# users/tests/test_permissions.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APIRequestFactory

from permissions.roles import (
    CAP_EARNINGS_VIEW_OWN,
    CAP_EARNINGS_VIEW_PLATFORM,
    HasCapability,
    capabilities_for,
)

User = get_user_model()


class _View:
    def __init__(self, capability=None):
        self.required_capability = capability


class PermissionRoleTests(TestCase):
    """
    Tests for role-based permissions.

    GUARANTEES:
    - Each marketplace party gets only its own capabilities
    - Anonymous users denied everywhere
    - Views without a declared capability are closed
    """

    def setUp(self):
        self.factory = APIRequestFactory()

        self.admin = User.objects.create_user(email="admin@example.com", password="pass", role="admin")
        self.vendor = User.objects.create_user(email="vendor@example.com", password="pass", role="vendor")
        self.customer = User.objects.create_user(email="customer@example.com", password="pass", role="customer")

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------

    def _request_for(self, user=None):
        request = self.factory.get("/")
        request.user = user
        return request

    def test_capability_map(self):
        self.assertEqual(capabilities_for(self.vendor), {CAP_EARNINGS_VIEW_OWN})
        self.assertEqual(capabilities_for(self.admin), {CAP_EARNINGS_VIEW_PLATFORM})
        self.assertEqual(capabilities_for(self.customer), set())

    def test_has_capability(self):
        permission = HasCapability()

        self.assertTrue(permission.has_permission(self._request_for(self.admin), _View(CAP_EARNINGS_VIEW_PLATFORM)))
        self.assertFalse(permission.has_permission(self._request_for(self.vendor), _View(CAP_EARNINGS_VIEW_PLATFORM)))
        self.assertFalse(permission.has_permission(self._request_for(self.admin), _View(None)))
        self.assertFalse(permission.has_permission(self._request_for(self.customer), _View(CAP_EARNINGS_VIEW_OWN)))

    def test_anonymous_user_denied_everywhere(self):
        request = self._request_for(None)

        self.assertFalse(HasCapability().has_permission(request, _View(CAP_EARNINGS_VIEW_OWN)))
        self.assertFalse(HasCapability().has_permission(request, _View(CAP_EARNINGS_VIEW_PLATFORM)))


class MeEndpointTests(TestCase):
    def test_me_returns_identity(self):
        vendor = User.objects.create_user(
            email="vendor@example.com", password="pass", role="vendor", full_name="Bilal Tailors"
        )
        client = APIClient()
        client.force_authenticate(user=vendor)

        response = client.get(reverse("users:me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], "vendor")
        self.assertEqual(response.data["email"], "vendor@example.com")
        self.assertEqual(str(response.data["id"]), str(vendor.pk))

    def test_jwt_login_works_with_email(self):
        User.objects.create_user(email="customer@example.com", password="pass", role="customer")

        response = APIClient().post(
            reverse("jwt-create"),
            {"email": "customer@example.com", "password": "pass"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
