from django.urls import path
from . import views

app_name = 'personal'

urlpatterns = [
    # Emotional journal
    path('emotions/', views.emotion_list, name='emotion_list'),
    path('emotions/create/', views.emotion_create, name='emotion_create'),
    path('emotions/summary/', views.emotion_summary, name='emotion_summary'),
    path('emotions/<str:entry_id>/delete/', views.emotion_delete, name='emotion_delete'),

    # Diary
    path('diary/', views.diary_list, name='diary_list'),
    path('diary/create/', views.diary_create, name='diary_create'),
    path('diary/stats/', views.diary_stats, name='diary_stats'),
    path('diary/export/', views.diary_export, name='diary_export'),
    path('diary/import/', views.diary_import, name='diary_import'),
    path('diary/<str:entry_id>/delete/', views.diary_delete, name='diary_delete'),

    # Rewards
    path('rewards/', views.rewards_state, name='rewards_state'),
    path('rewards/items/<str:item_id>/purchase/', views.rewards_purchase, name='rewards_purchase'),
    path('rewards/items/<str:item_id>/equip/', views.rewards_equip, name='rewards_equip'),

    # Community
    path('community/', views.community_feed, name='community_feed'),
    path('community/posts/create/', views.community_post_create, name='community_post_create'),
    path('community/posts/<str:post_id>/like/', views.community_post_like, name='community_post_like'),
    path('community/posts/<str:post_id>/comment/', views.community_post_comment, name='community_post_comment'),
    path('community/groups/<str:group_id>/join/', views.community_group_join, name='community_group_join'),
]
