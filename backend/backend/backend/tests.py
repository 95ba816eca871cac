from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient


class HealthEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_greeting(self):
        response = self.client.get('/api/greeting')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('message', response.data)

    def test_database_round_trip(self):
        response = self.client.get('/api/test-db')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')


class CheckDatabaseCommandTests(TestCase):
    def test_reports_images_table(self):
        out = StringIO()
        call_command('check_database', stdout=out)
        output = out.getvalue()
        self.assertIn('Connection successful', output)
        self.assertIn('Table images exists', output)

    def test_reports_missing_table(self):
        out = StringIO()
        call_command('check_database', table='no_such_table', stdout=out)
        self.assertIn('Table no_such_table does not exist', out.getvalue())
