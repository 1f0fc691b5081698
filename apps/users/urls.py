"""Account routes: ``/users/`` for administrators, ``/users/me/`` for everyone."""

from rest_framework.routers import SimpleRouter  # type: ignore

from .views import UserViewSet

router = SimpleRouter()
router.register(r'', UserViewSet, basename='user')

urlpatterns = router.urls
