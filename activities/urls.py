from django.urls import path
from . import views

app_name = 'activities'

urlpatterns = [
    path('', views.activity_list, name='activity_list'),
    path('summary/', views.summary, name='summary'),
    path('create/', views.activity_create, name='activity_create'),
    path('<int:pk>/edit/', views.activity_update, name='activity_update'),
    path('<int:pk>/status/', views.activity_set_status, name='activity_set_status'),
    path('<int:pk>/toggle/', views.activity_toggle, name='activity_toggle'),
    path('<int:pk>/delete/', views.activity_delete, name='activity_delete'),
    path('routines/<uuid:routine_id>/delete/', views.routine_delete, name='routine_delete'),

    # Data management
    path('export/', views.export_data, name='export_data'),
    path('import/', views.import_data, name='import_data'),
    path('clear/', views.clear_data, name='clear_data'),
]
