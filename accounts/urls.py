from django.urls import path
from . import views

urlpatterns = [
    path('login/', views.login_page, name='accounts_login'),
    path('api/auth/login', views.oauth_login, name='accounts_oauth_login'),
    path('api/auth/callback', views.oauth_callback, name='accounts_oauth_callback'),
    path('api/auth/logout', views.logout_view, name='accounts_logout'),
]
