from django.urls import path
from . import views

urlpatterns = [
    path('', views.index, name='manage_orders_index'),
    path('order/', views.order, name='manage_orders_order'),
    path('order/<int:order_id>/edit/', views.edit_order, name='manage_orders_edit_order'),
    path('summary/', views.summary, name='manage_orders_summary'),
    # API: orders
    path('api/order/submit', views.api_submit_order, name='mo_api_submit_order'),
    path('api/order/<int:order_id>', views.api_order_detail, name='mo_api_order_detail'),
    path('api/order/<int:order_id>/update', views.api_update_order, name='mo_api_update_order'),
    path('api/order/<int:order_id>/delete', views.api_delete_order, name='mo_api_delete_order'),
    path('api/order/<int:order_id>/status', views.api_order_status, name='mo_api_order_status'),
    path('api/orders', views.api_orders, name='mo_api_orders'),
    path('api/orders/by-phone', views.api_orders_by_phone, name='mo_api_orders_by_phone'),
    path('api/orders/summary', views.api_orders_summary, name='mo_api_orders_summary'),
    # Print
    path('print/order/<int:order_id>/', views.print_order, name='mo_print_order'),
    path('print/preview/', views.print_preview, name='mo_print_preview'),
    path('api/print/draft', views.api_print_draft, name='mo_api_print_draft'),
    path('api/print/layout', views.api_print_layout, name='mo_api_print_layout'),
]
