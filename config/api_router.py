from django.conf import settings
from django.urls import include
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework.routers import SimpleRouter

from eventfi.users.api.views import UserViewSet

router = DefaultRouter() if settings.DEBUG else SimpleRouter()

router.register("users", UserViewSet)


app_name = "api"
# Prepend includes to ensure they take precedence over router routes
urlpatterns = [
    path(
        "audit/",
        include(("eventfi.audit.api.urls", "audit"), namespace="audit"),
    ),
    path(
        "events/<int:event_id>/chat/",
        include(("eventfi.chat.api.urls", "chat"), namespace="chat"),
    ),
    *router.urls,
]
