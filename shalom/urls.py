from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('django.contrib.auth.urls')),
    path('development/', include('development.urls')),
    path('finance/', include('finance.urls')),
    path('personal/', include('personal.urls')),
    path('activities/', include('activities.urls')),
]
