from django.urls import path

from .views import ClickCallbackView, ClickPrepareView, ClickCompleteView

urlpatterns = [
    path('', ClickCallbackView.as_view(), name='click-callback'),
    path('prepare/', ClickPrepareView.as_view(), name='click-prepare'),
    path('complete/', ClickCompleteView.as_view(), name='click-complete'),
]
