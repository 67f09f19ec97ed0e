from django.urls import path
from . import views

app_name = 'finance'

urlpatterns = [
    path('summary/', views.summary, name='summary'),
    path('cash-flow/', views.cash_flow, name='cash_flow'),
    path('categories/', views.category_list, name='category_list'),

    # Transactions
    path('transactions/', views.transaction_list, name='transaction_list'),
    path('transactions/create/', views.transaction_create, name='transaction_create'),
    path('transactions/<int:pk>/edit/', views.transaction_update, name='transaction_update'),
    path('transactions/<int:pk>/delete/', views.transaction_delete, name='transaction_delete'),

    # Goals
    path('goals/', views.goal_list, name='goal_list'),
    path('goals/create/', views.goal_create, name='goal_create'),
    path('goals/<int:pk>/contribute/', views.goal_contribute, name='goal_contribute'),
    path('goals/<int:pk>/delete/', views.goal_delete, name='goal_delete'),

    # Data management
    path('export/', views.export_data, name='export_data'),
    path('import/', views.import_data, name='import_data'),
    path('clear/', views.clear_data, name='clear_data'),
]
