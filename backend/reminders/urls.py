from django.urls import path
from .views import (
    payment_reminder_list_create, payment_reminder_detail, payment_reminder_active,
    payment_reminder_acknowledge, payment_reminder_dismiss, payment_reminder_mark_read,
    payment_reminder_next_reminder, notification_list
)

urlpatterns = [
    # Payment reminder endpoints
    path('payment-reminders/', payment_reminder_list_create, name='payment-reminder-list-create'),
    path('payment-reminders/active/', payment_reminder_active, name='payment-reminder-active'),
    path('payment-reminders/<str:pk>/', payment_reminder_detail, name='payment-reminder-detail'),
    path('payment-reminders/<str:pk>/acknowledge/', payment_reminder_acknowledge, name='payment-reminder-acknowledge'),
    path('payment-reminders/<str:pk>/dismiss/', payment_reminder_dismiss, name='payment-reminder-dismiss'),
    path('payment-reminders/<str:pk>/read/', payment_reminder_mark_read, name='payment-reminder-read'),
    path('payment-reminders/<str:pk>/next-reminder/', payment_reminder_next_reminder, name='payment-reminder-next-reminder'),

    # Notification endpoints
    path('notifications/', notification_list, name='notification-list'),
]
