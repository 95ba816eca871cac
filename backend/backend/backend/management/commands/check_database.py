"""
Diagnose the database connection:
1. Connect with the configured credentials and report server time/version
2. Check that the images table exists
"""
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError, connection
import psycopg2

from images.models import Image


class Command(BaseCommand):
    help = 'Test the database connection and report whether the images table exists'

    def add_arguments(self, parser):
        parser.add_argument(
            '--table',
            default=Image._meta.db_table,
            help='Table that must exist (default: images)',
        )

    def handle(self, *args, **options):
        db = settings.DATABASES['default']
        self.stdout.write('[DB] Testing database connection...')
        self.stdout.write(f"[DB] Engine: {db['ENGINE']}")

        if db['ENGINE'].endswith('postgresql'):
            self.stdout.write(f"[DB] Host: {db.get('HOST')}  Port: {db.get('PORT')}  Database: {db.get('NAME')}")
            self.check_postgres(db)
        else:
            self.stdout.write(f"[DB] Database: {db['NAME']}")
            self.check_django_connection()

        self.check_table(options['table'])

    def check_postgres(self, db):
        """Connect with psycopg2 directly so driver-level errors surface unchanged"""
        try:
            conn = psycopg2.connect(
                host=db.get('HOST'),
                port=db.get('PORT'),
                user=db.get('USER'),
                password=db.get('PASSWORD'),
                database=db.get('NAME'),
                connect_timeout=10,
            )
        except psycopg2.OperationalError as e:
            self.stdout.write(self.style.ERROR('[DB] Connection failed!'))
            self.stdout.write(self.style.WARNING('[DB] Check that the host is reachable, the project is not paused and the credentials are correct'))
            raise CommandError(str(e).strip()) from e

        try:
            cur = conn.cursor()
            cur.execute('SELECT NOW(), version()')
            now, version = cur.fetchone()
            cur.close()
        finally:
            conn.close()

        self.stdout.write(self.style.SUCCESS('✓ Connection successful!'))
        self.stdout.write(f"   Current time: {now}")
        self.stdout.write(f"   PostgreSQL version: {' '.join(version.split()[:2])}")

    def check_django_connection(self):
        try:
            connection.ensure_connection()
        except DatabaseError as e:
            self.stdout.write(self.style.ERROR('[DB] Connection failed!'))
            raise CommandError(str(e)) from e
        self.stdout.write(self.style.SUCCESS('✓ Connection successful!'))

    def check_table(self, table):
        with connection.cursor() as cursor:
            tables = connection.introspection.table_names(cursor)
        if table in tables:
            self.stdout.write(self.style.SUCCESS(f'✓ Table {table} exists'))
        else:
            self.stdout.write(self.style.WARNING(f'⚠ Table {table} does not exist (run migrate)'))
