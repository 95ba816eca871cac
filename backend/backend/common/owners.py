def request_owner(request):
    """The authenticated user behind a request, or None for anonymous calls"""
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user
    return None
