from django.urls import path
from . import views

app_name = 'conversations'

urlpatterns = [
    path('', views.ChatListCreateView.as_view(), name='chat-list'),
    path('<str:tracking_id>/', views.ChatDetailView.as_view(), name='chat-detail'),
    path('<str:tracking_id>/status/', views.ChatStatusView.as_view(), name='chat-status'),
    path('<str:tracking_id>/read/', views.ChatMarkReadView.as_view(), name='chat-read'),
]
