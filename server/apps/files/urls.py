"""URL configuration for files app."""

from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('status', views.status, name='status'),
    path('stats', views.stats, name='stats'),
    path('files', views.files_collection, name='collection'),
    path('files/<int:file_id>', views.file_detail, name='detail'),
    path(
        'files/<int:file_id>/publish',
        views.file_publish,
        name='publish',
    ),
    path(
        'files/<int:file_id>/unpublish',
        views.file_unpublish,
        name='unpublish',
    ),
    path('files/<int:file_id>/data', views.file_data, name='data'),
]
