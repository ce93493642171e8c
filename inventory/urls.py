from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# REST API Router
router = DefaultRouter()
router.register(r'products', views.ProductViewSet, basename='product')

app_name = 'inventory'

urlpatterns = [
    path('', include(router.urls)),
]
