from fastapi import Request

from classcast.services.container import BroadcastServices


def get_services(request: Request) -> BroadcastServices:
    """
    Dependency returning the app's broadcast services.
    """
    return request.app.state.services
