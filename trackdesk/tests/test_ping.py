from django.test import TestCase, Client
from django.urls import reverse
from rest_framework import status
import json


class PingEndpointTest(TestCase):
    def setUp(self):
        """Set up test client."""
        self.client = Client()
        self.ping_url = '/ping/'

    def test_ping_endpoint_returns_bang(self):
        """Test that ping endpoint returns 'Bang' message."""
        response = self.client.get(self.ping_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/json')

        response_data = json.loads(response.content)
        self.assertEqual(response_data['message'], 'Bang')

    def test_ping_endpoint_with_reverse_url(self):
        """Test ping endpoint using reverse URL lookup."""
        response = self.client.get(reverse('ping'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(json.loads(response.content)['message'], 'Bang')

    def test_ping_endpoint_only_allows_get(self):
        """Test that ping endpoint only allows GET requests."""
        response = self.client.post(self.ping_url)
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

        response = self.client.delete(self.ping_url)
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_ping_ignores_bad_credentials(self):
        """Health checks must not depend on the auth service."""
        response = self.client.get(self.ping_url, HTTP_AUTHORIZATION='Bearer not-a-token')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
