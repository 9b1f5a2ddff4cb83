"""Top-level URL lookup for the Inventario project."""

from django.contrib import admin
from django.urls import include, path

from loan.api import loan_api_urls
from stock.api import stock_api_urls

apipatterns = [
    path('loan/', include(loan_api_urls)),
    path('stock/', include(stock_api_urls)),
]

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include(apipatterns)),
]
