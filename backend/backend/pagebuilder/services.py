"""
Page Service
Page CRUD, slug lookup, publishing and page-scoped component operations.
"""

import logging

from django.db import transaction

from common.errors import NotFoundError
from common.pagination import paginate

from .component_tree import ComponentTree
from .jsx_exporter import render_page_jsx
from .models import Page

logger = logging.getLogger(__name__)


class PageService:
    """
    Pages are persisted rows; each owns one component tree stored as JSON.
    Component operations load the tree, mutate it and write it back.
    """

    def create(self, data, user=None):
        tree = ComponentTree.from_list(data.get('components') or [])
        page = Page.objects.create(
            user=user,
            name=data['name'],
            slug=data['slug'],
            title=data['name'],
            description=data.get('description'),
            keywords=data.get('keywords'),
            author=data.get('author') or 'System',
            components=tree.to_list(),
            is_published=data.get('is_published') or False,
        )
        logger.info(f"[PAGES] Created page {page.id} ({page.slug})")
        return page

    def list(self, page=1, limit=10, user=None):
        queryset = Page.objects.all()
        if user is not None:
            queryset = queryset.filter(user=user)
        return paginate(queryset.order_by('id'), page, limit)

    def get(self, page_id):
        page = Page.objects.filter(pk=page_id).first()
        if page is None:
            raise NotFoundError(f"Page with ID {page_id} not found")
        return page

    def get_by_slug(self, slug):
        page = Page.objects.filter(slug=slug).order_by('id').first()
        if page is None:
            raise NotFoundError(f"Page with slug {slug} not found")
        return page

    def update(self, page_id, data):
        page = self.get(page_id)
        if data.get('name') is not None:
            page.name = data['name']
            page.title = data['name']
        if data.get('slug') is not None:
            page.slug = data['slug']
        for field in ('description', 'keywords', 'author'):
            if data.get(field) is not None:
                setattr(page, field, data[field])
        if data.get('components') is not None:
            page.components = ComponentTree.from_list(data['components']).to_list()
        if data.get('is_published') is not None:
            page.is_published = data['is_published']
        page.save()
        logger.info(f"[PAGES] Updated page {page.id}")
        return page

    def remove(self, page_id):
        page = self.get(page_id)
        page.delete()
        logger.info(f"[PAGES] Deleted page {page_id}")

    def publish(self, page_id):
        return self.update(page_id, {'is_published': True})

    def unpublish(self, page_id):
        return self.update(page_id, {'is_published': False})

    def export_jsx(self, page_id):
        page = self.get(page_id)
        return {
            'jsx': render_page_jsx(page),
            'filename': f"{page.slug}.jsx",
        }

    # Page-scoped components

    def _tree(self, page):
        return ComponentTree.from_list(page.components)

    def _save_tree(self, page, tree):
        page.components = tree.to_list()
        page.save(update_fields=['components', 'updated_at'])

    def list_components(self, page_id):
        return self._tree(self.get(page_id)).list_all()

    def get_component(self, page_id, component_id):
        return self._tree(self.get(page_id)).find_by_id(component_id)

    def _get_for_update(self, page_id):
        page = Page.objects.select_for_update().filter(pk=page_id).first()
        if page is None:
            raise NotFoundError(f"Page with ID {page_id} not found")
        return page

    def add_component(self, page_id, data):
        with transaction.atomic():
            page = self._get_for_update(page_id)
            tree = self._tree(page)
            component = tree.create(data)
            self._save_tree(page, tree)
        return component

    def update_component(self, page_id, component_id, patch):
        with transaction.atomic():
            page = self._get_for_update(page_id)
            tree = self._tree(page)
            component = tree.update(component_id, patch)
            self._save_tree(page, tree)
        return component

    def remove_component(self, page_id, component_id):
        with transaction.atomic():
            page = self._get_for_update(page_id)
            tree = self._tree(page)
            tree.remove(component_id)
            self._save_tree(page, tree)
