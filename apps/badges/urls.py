from django.urls import path

from .views import BadgeActivateView, BadgeCollectionView, BadgeTaskCompleteView

app_name = 'badges'

urlpatterns = [
    path('', BadgeCollectionView.as_view(), name='badge_collection'),
    path('activate/', BadgeActivateView.as_view(), name='badge_activate'),
    path('task-complete/', BadgeTaskCompleteView.as_view(), name='badge_task_complete'),
]
