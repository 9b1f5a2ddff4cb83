"""JSON API for the Stock app."""

from django.urls import include, path

from rest_framework import generics, permissions

from stock import models, serializers


class IsAdminOrReadOnly(permissions.BasePermission):
    """Anyone authenticated can read; only admins can write."""

    def has_permission(self, request, view):
        """Allow safe methods, or any method for admins."""
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(getattr(request.user, 'is_admin', False))


class ItemMixin:
    """Mixin class for Item endpoints."""

    queryset = models.Item.objects.all()
    serializer_class = serializers.ItemSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrReadOnly]


class ItemList(ItemMixin, generics.ListCreateAPIView):
    """API endpoint for accessing a list of Item objects.

    - GET: Return list of items
    - POST: Create a new item (admin only)
    """


class ItemDetail(ItemMixin, generics.RetrieveUpdateAPIView):
    """API endpoint for detail view of an Item object."""


class AulaMixin:
    """Mixin class for Aula endpoints."""

    queryset = models.Aula.objects.all()
    serializer_class = serializers.AulaSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrReadOnly]


class AulaList(AulaMixin, generics.ListCreateAPIView):
    """API endpoint for accessing a list of Aula objects."""


class AulaDetail(AulaMixin, generics.RetrieveUpdateAPIView):
    """API endpoint for detail view of an Aula object."""


stock_api_urls = [
    path(
        'item/',
        include([
            path('<int:pk>/', ItemDetail.as_view(), name='api-stock-item-detail'),
            path('', ItemList.as_view(), name='api-stock-item-list'),
        ]),
    ),
    path(
        'aula/',
        include([
            path('<int:pk>/', AulaDetail.as_view(), name='api-stock-aula-detail'),
            path('', AulaList.as_view(), name='api-stock-aula-list'),
        ]),
    ),
]
