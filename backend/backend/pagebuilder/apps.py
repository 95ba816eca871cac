from django.apps import AppConfig
from django.conf import settings


class PagebuilderConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'pagebuilder'

    def ready(self):
        from .component_tree import ComponentStore

        if getattr(settings, 'PAGEBUILDER_SEED_COMPONENTS', False):
            self.component_store = ComponentStore.with_samples()
        else:
            self.component_store = ComponentStore()
