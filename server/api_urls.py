from rest_framework.routers import DefaultRouter

from trilhas.views import (
    AdminContentItemViewSet, AdminTrilhaViewSet, ContentAnswerViewSet, ContentItemViewSet,
    TrilhaRunViewSet, TrilhaViewSet,
)
from users.views import UserViewset


router = DefaultRouter()

# User
router.register(r'users', UserViewset, basename='user')

# Trilhas (end user)
router.register(r'trilhas', TrilhaViewSet, basename='trilha')
router.register(r'conteudos', ContentItemViewSet, basename='conteudo')
router.register(r'respostas', ContentAnswerViewSet, basename='resposta')
router.register(r'runs', TrilhaRunViewSet, basename='trilha-run')

# Authoring
router.register(r'admin/trilhas', AdminTrilhaViewSet, basename='admin-trilha')
router.register(r'admin/conteudos', AdminContentItemViewSet, basename='admin-conteudo')


urlpatterns = router.urls
