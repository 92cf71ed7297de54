from django.urls import path
from wallet import views

app_name = 'wallet'

urlpatterns = [
    path('process-transaction/', views.process_transaction, name='process_transaction'),
    path('balances/', views.balances, name='balances'),
    path('transactions/', views.TransactionListView.as_view(), name='transactions'),
]
