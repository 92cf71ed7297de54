from django.urls import path
from accounts import views

app_name = 'accounts'

urlpatterns = [
    # Phone OTP
    path('issue-otp/', views.issue_otp_view, name='issue_otp'),
    path('confirm-otp/', views.confirm_otp_view, name='confirm_otp'),

    # Session from a confirmed phone
    path('exchange-session/', views.exchange_session_view, name='exchange_session'),
    path('register/', views.register_view, name='register'),

    # Profile
    path('me/', views.me_view, name='me'),
]
