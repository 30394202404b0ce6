from django.urls import path
from . import views

urlpatterns = [
    path('menu/admin/', views.menu_admin, name='menu_admin'),
    path('menu/admin/replace/<str:name_en>/', views.replace_category_items, name='menu_replace_category'),
    # API: catalog
    path('api/menu', views.api_menu, name='menu_api_catalog'),
    # API: admin screen
    path('api/admin/food-items', views.api_create_food_item, name='menu_api_create_food_item'),
    path('api/admin/food-items/<int:item_id>', views.api_update_food_item, name='menu_api_update_food_item'),
    path('api/admin/food-items/<int:item_id>/options/<str:kind>', views.api_create_option, name='menu_api_create_option'),
    path('api/admin/food-items/<int:item_id>/liter-sizes', views.api_add_liter_size, name='menu_api_add_liter_size'),
    path('api/admin/food-items/<int:item_id>/<str:action>', views.api_food_item_action, name='menu_api_food_item_action'),
    path('api/admin/liter-sizes/<int:liter_size_id>/delete', views.api_remove_liter_size, name='menu_api_remove_liter_size'),
    path('api/admin/options/<str:kind>/<int:option_id>', views.api_update_option, name='menu_api_update_option'),
    path('api/admin/options/<str:kind>/<int:option_id>/<str:action>', views.api_option_action, name='menu_api_option_action'),
    path('api/admin/categories/<str:name_en>/replace', views.replace_category_items, name='menu_api_replace_category'),
]
