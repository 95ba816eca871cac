#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""

import os
import sys
# Ensure project root is in sys.path for all import contexts
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)


def main():
    """Run administrative tasks."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.settings')
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


def serve():
    """Run the ASGI app under Uvicorn so HTTP and the chat websocket share one server"""
    try:
        import uvicorn
    except ImportError as e:
        print(f"Error: {e}")
        print("Uvicorn not installed. Please install it: pip install uvicorn")
        sys.exit(1)

    backend_dir = os.path.dirname(os.path.abspath(__file__))
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', '4000'))

    print("=" * 70)
    print("Starting Page Builder Backend (Hot Reload Enabled)")
    print("=" * 70)
    print(f"HTTP API:  http://localhost:{port}/api/")
    print(f"WebSocket: ws://localhost:{port}/ws/groups/<id>/chat/")
    print("=" * 70)

    uvicorn.run(
        "backend.asgi:application",
        host=host,
        port=port,
        reload=True,
        reload_dirs=[backend_dir],
        log_level=os.environ.get('LOG_LEVEL', 'info').lower(),
    )


if __name__ == '__main__':
    # Bare `manage.py` or `manage.py runserver` starts Uvicorn; everything else goes to Django
    if len(sys.argv) == 1 or (len(sys.argv) == 2 and sys.argv[1] == 'runserver'):
        os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'backend.settings')
        serve()
    else:
        main()
