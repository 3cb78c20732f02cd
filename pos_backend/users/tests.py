# users/tests.py

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from store.models import Store

User = get_user_model()


class UserManagerTests(TestCase):
    def test_username_derived_from_email(self):
        user = User.objects.create_user(email="kasir@example.com", password="pass")

        self.assertEqual(user.username, "kasir")
        self.assertEqual(user.role, User.ROLE_OWNER)
        self.assertTrue(user.check_password("pass"))

    def test_username_is_made_unique(self):
        User.objects.create_user(email="kasir@example.com", password="pass")
        second = User.objects.create_user(email="kasir@example.org", password="pass")

        self.assertEqual(second.username, "kasir2")

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(email="root@example.com", password="pass")

        self.assertEqual(admin.role, User.ROLE_ADMIN)
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)


class AuthApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.owner = User.objects.create_user(email="owner@example.com", password="secret-pass")
        self.store = Store.objects.create(owner=self.owner, name="Toko A")

    def test_jwt_login_with_email(self):
        response = self.client.post(
            reverse("users:jwt-create"),
            {"email": "owner@example.com", "password": "secret-pass"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_me_reports_store(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse("users:me"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["email"], "owner@example.com")
        self.assertEqual(response.data["store_id"], self.store.id)

    def test_me_requires_auth(self):
        response = self.client.get(reverse("users:me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
