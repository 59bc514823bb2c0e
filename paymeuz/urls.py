from django.urls import path

from .views import PaymeCallbackView

urlpatterns = [
    path('', PaymeCallbackView.as_view(), name='payme-callback'),
]
