from unittest import mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient

from common.errors import NotFoundError, ValidationError

from .component_tree import (
    COMPONENT_TYPES, ComponentStore, ComponentTree, ContainerComponent, IconComponent,
    TextComponent, component_from_dict,
)
from .jsx_exporter import component_name, render_page_jsx
from .models import Page
from .views import ComponentViewSet

User = get_user_model()


class ComponentShapeTests(SimpleTestCase):
    def test_irrelevant_fields_are_dropped(self):
        node = component_from_dict({
            'id': 'a', 'type': 'text', 'content': 'Hi', 'src': '/x.png', 'iconName': 'star',
        })
        self.assertIsInstance(node, TextComponent)
        self.assertEqual(node.to_dict(), {'id': 'a', 'type': 'text', 'content': 'Hi'})

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            component_from_dict({'id': 'a', 'type': 'video'})

    def test_children_on_leaf_are_rejected(self):
        with self.assertRaises(ValidationError):
            component_from_dict({'id': 'a', 'type': 'icon', 'children': [{'id': 'b', 'type': 'text'}]})

    def test_wire_names(self):
        node = component_from_dict({
            'id': 'i', 'type': 'icon', 'iconName': 'heart', 'size': 24,
            'position': {'x': 1, 'y': 2, 'zIndex': 3},
        })
        self.assertIsInstance(node, IconComponent)
        self.assertEqual(node.icon_name, 'heart')
        self.assertEqual(node.to_dict()['position'], {'x': 1, 'y': 2, 'zIndex': 3})

    def test_row_and_column_are_containers(self):
        for tag in ('row', 'column'):
            node = component_from_dict({'id': tag, 'type': tag})
            self.assertIsInstance(node, ContainerComponent)
            self.assertEqual(node.to_dict(), {'id': tag, 'type': tag, 'children': []})


class ComponentTreeTests(SimpleTestCase):
    def setUp(self):
        self.tree = ComponentStore.with_samples()

    def test_find_nested_node(self):
        node = self.tree.find_by_id('comp-6')
        self.assertEqual(node.src, '/images/nested.jpg')

    def test_find_is_preorder(self):
        self.assertEqual([n.id for n in self.tree.walk()], [f'comp-{i}' for i in range(1, 7)])

    def test_find_missing(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.tree.find_by_id('comp-99')
        self.assertEqual(ctx.exception.message, 'Component with ID comp-99 not found')

    def test_create_assigns_unused_id(self):
        existing = self.tree.ids()
        node = self.tree.create({'type': 'text', 'content': 'New'})

        self.assertNotIn(node.id, existing)
        self.assertEqual(node.id, 'comp-7')
        self.assertIs(self.tree.components[-1], node)

    def test_create_ignores_client_supplied_root_id(self):
        node = self.tree.create({'id': 'comp-1', 'type': 'text', 'content': 'Clash'})
        self.assertNotEqual(node.id, 'comp-1')
        self.assertEqual(self.tree.find_by_id('comp-1').content, 'Sample Text Component')

    def test_create_then_find_round_trip(self):
        node = self.tree.create({
            'type': 'container',
            'style': {'gap': 4},
            'children': [{'type': 'text', 'content': 'Inside'}],
        })
        self.assertEqual(self.tree.find_by_id(node.id), node)
        self.assertEqual(node.children[0].id, f'comp-{int(node.id.split("-")[1]) + 1}')

    def test_create_rejects_nested_duplicate(self):
        with self.assertRaises(ValidationError):
            self.tree.create({'type': 'row', 'children': [{'id': 'comp-5', 'type': 'text'}]})

    def test_container_children_default_to_empty(self):
        node = self.tree.create({'type': 'column'})
        self.assertEqual(node.children, [])

    def test_update_merges_style_and_keeps_fields(self):
        updated = self.tree.update('comp-1', {'style': {'color': 'blue', 'margin': 0}})

        self.assertEqual(updated.content, 'Sample Text Component')
        self.assertEqual(updated.style, {'fontSize': '16px', 'color': 'blue', 'padding': '10px', 'margin': 0})
        self.assertIs(self.tree.components[0], updated)

    def test_update_nested_in_place(self):
        self.tree.update('comp-5', {'content': 'Changed'})

        container = self.tree.find_by_id('comp-4')
        self.assertEqual(container.children[0].content, 'Changed')
        self.assertEqual(container.children[0].id, 'comp-5')

    def test_update_changing_type_falls_back_per_field(self):
        updated = self.tree.update('comp-3', {'type': 'text'})

        self.assertIsInstance(updated, TextComponent)
        self.assertEqual(updated.content, '')
        self.assertEqual(updated.style, {'padding': '10px'})

    def test_update_is_idempotent(self):
        patch = {'content': 'Sample Text Component', 'style': {'fontSize': '16px'}}
        self.tree.update('comp-1', patch)
        once = self.tree.to_list()
        self.tree.update('comp-1', patch)
        self.assertEqual(self.tree.to_list(), once)

    def test_update_container_children(self):
        updated = self.tree.update('comp-4', {'children': [{'type': 'text', 'content': 'Only'}]})

        self.assertEqual([c.content for c in updated.children], ['Only'])
        with self.assertRaises(NotFoundError):
            self.tree.find_by_id('comp-6')

    def test_update_missing(self):
        with self.assertRaises(NotFoundError):
            self.tree.update('nope', {'content': 'x'})

    def test_remove_drops_subtree(self):
        removed = self.tree.remove('comp-4')

        self.assertEqual(removed.id, 'comp-4')
        for component_id in ('comp-4', 'comp-5', 'comp-6'):
            with self.assertRaises(NotFoundError):
                self.tree.find_by_id(component_id)

    def test_remove_nested(self):
        self.tree.remove('comp-5')
        self.assertEqual([c.id for c in self.tree.find_by_id('comp-4').children], ['comp-6'])

    def test_remove_missing(self):
        with self.assertRaises(NotFoundError):
            self.tree.remove('comp-42')

    def test_listing_is_top_level_only(self):
        self.assertEqual([n.id for n in self.tree.list_all()], ['comp-1', 'comp-2', 'comp-3', 'comp-4'])
        self.assertEqual([n.id for n in self.tree.find_by_type('text')], ['comp-1'])

    def test_find_by_type_rejects_unknown_tag(self):
        with self.assertRaises(ValidationError):
            self.tree.find_by_type('video')

    def test_available_types(self):
        self.assertEqual(ComponentTree.available_types(), list(COMPONENT_TYPES))

    def test_duplicate_ids_rejected_on_load(self):
        with self.assertRaises(ValidationError):
            ComponentTree.from_list([
                {'id': 'x', 'type': 'container', 'children': [{'id': 'x', 'type': 'text'}]},
            ])

    def test_load_assigns_missing_ids_after_existing(self):
        tree = ComponentTree.from_list([{'id': 'comp-9', 'type': 'text'}, {'type': 'text'}])
        self.assertEqual([n.id for n in tree.components], ['comp-9', 'comp-10'])


class JSXExportTests(SimpleTestCase):
    def test_component_name(self):
        self.assertEqual(component_name('about-us'), 'AboutUs')
        self.assertEqual(component_name('2024_launch'), 'Page2024Launch')

    def test_render_escapes_and_nests(self):
        page = Page(slug='landing', components=[
            {'id': 'comp-1', 'type': 'text', 'content': 'Hello <World>'},
            {'id': 'comp-2', 'type': 'row', 'children': [
                {'id': 'comp-3', 'type': 'image', 'src': '/a.png', 'alt': 'A'},
            ]},
        ])
        jsx = render_page_jsx(page)

        self.assertIn('const Landing = () => {', jsx)
        self.assertIn('<p>Hello &lt;World&gt;</p>', jsx)
        self.assertIn('<div className="row">', jsx)
        self.assertIn('<img src="/a.png" alt="A" />', jsx)
        self.assertIn('export default Landing;', jsx)

    def test_style_keys_that_are_not_identifiers_are_quoted(self):
        page = Page(slug='styled', components=[
            {'id': 'comp-1', 'type': 'text', 'content': 'Hi',
             'style': {'fontSize': '16px', 'background-color': 'red'}},
        ])
        jsx = render_page_jsx(page)

        self.assertIn('style={{ fontSize: "16px", "background-color": "red" }}', jsx)


class PageAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def create_page(self, **overrides):
        payload = {'name': 'Home', 'slug': 'home', 'description': 'Landing page'}
        payload.update(overrides)
        return self.client.post('/api/pages', payload, format='json')

    def test_create_returns_wire_form(self):
        response = self.create_page(components=[{'type': 'text', 'content': 'Hi'}])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data
        self.assertEqual(data['metadata']['title'], 'Home')
        self.assertEqual(data['metadata']['author'], 'System')
        self.assertFalse(data['isPublished'])
        self.assertIsNone(data['userId'])
        self.assertEqual(data['components'], [{'id': 'comp-1', 'type': 'text', 'content': 'Hi'}])

    def test_authenticated_creator_owns_page(self):
        user = User.objects.create_user(username='owner', email='owner@example.com')
        self.client.force_authenticate(user=user)
        response = self.create_page()
        self.assertEqual(response.data['userId'], str(user.id))

    def test_invalid_slug(self):
        response = self.create_page(slug='not a slug!')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Bad Request')

    def test_list_envelope_in_insertion_order(self):
        for i in range(3):
            self.create_page(name=f'P{i}', slug=f'p{i}')
        response = self.client.get('/api/pages', {'page': 2, 'limit': 2})

        self.assertEqual(response.data['total'], 3)
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['limit'], 2)
        self.assertEqual([p['name'] for p in response.data['items']], ['P2'])

    def test_bad_pagination(self):
        response = self.client.get('/api/pages', {'page': 0})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_get_by_slug_and_missing(self):
        self.create_page()
        self.assertEqual(self.client.get('/api/pages/slug/home').data['name'], 'Home')

        response = self.client.get('/api/pages/slug/missing')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Page with slug missing not found')

    def test_update_renames_title_and_keeps_other_fields(self):
        page_id = self.create_page().data['id']
        response = self.client.patch(f'/api/pages/{page_id}', {'name': 'Start'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metadata']['title'], 'Start')
        self.assertEqual(response.data['slug'], 'home')
        self.assertEqual(response.data['metadata']['description'], 'Landing page')

    def test_publish_unpublish(self):
        page_id = self.create_page().data['id']
        self.assertTrue(self.client.post(f'/api/pages/{page_id}/publish').data['isPublished'])
        self.assertFalse(self.client.post(f'/api/pages/{page_id}/unpublish').data['isPublished'])

    def test_delete(self):
        page_id = self.create_page().data['id']
        self.assertEqual(self.client.delete(f'/api/pages/{page_id}').status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f'/api/pages/{page_id}').status_code, status.HTTP_404_NOT_FOUND)

    def test_export_jsx(self):
        page_id = self.create_page(slug='about-us', components=[{'type': 'text', 'content': 'About'}]).data['id']
        response = self.client.get(f'/api/pages/{page_id}/export-jsx')

        self.assertEqual(response.data['filename'], 'about-us.jsx')
        self.assertIn('const AboutUs', response.data['jsx'])

    def test_page_scoped_components(self):
        page_id = self.create_page(components=[
            {'type': 'container', 'children': [{'type': 'text', 'content': 'Nested'}]},
        ]).data['id']
        base = f'/api/pages/{page_id}/components'

        created = self.client.post(base, {'type': 'icon', 'iconName': 'star'}, format='json')
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data['id'], 'comp-3')

        patched = self.client.patch(f'{base}/comp-2', {'content': 'Edited'}, format='json')
        self.assertEqual(patched.data['content'], 'Edited')

        self.assertEqual(self.client.delete(f'{base}/comp-3').status_code, status.HTTP_204_NO_CONTENT)

        page = Page.objects.get(pk=page_id)
        self.assertEqual(page.components[0]['children'][0]['content'], 'Edited')
        self.assertEqual(len(page.components), 1)
        self.assertEqual(self.client.get(f'{base}/comp-3').status_code, status.HTTP_404_NOT_FOUND)


class ComponentAPITests(TestCase):
    def setUp(self):
        self.store = ComponentStore.with_samples()
        patcher = mock.patch.object(ComponentViewSet, 'get_store', return_value=self.store)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = APIClient()

    def test_list_top_level(self):
        response = self.client.get('/api/components')

        self.assertEqual(response.data['total'], 4)
        self.assertEqual([c['id'] for c in response.data['items']], ['comp-1', 'comp-2', 'comp-3', 'comp-4'])

    def test_filter_by_type(self):
        response = self.client.get('/api/components', {'type': 'container'})
        self.assertEqual([c['id'] for c in response.data['items']], ['comp-4'])

    def test_types(self):
        response = self.client.get('/api/components/types')
        self.assertEqual(response.data, list(COMPONENT_TYPES))

    def test_crud(self):
        created = self.client.post('/api/components', {'type': 'text', 'content': 'Hello'}, format='json')
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        component_id = created.data['id']

        patched = self.client.patch(f'/api/components/{component_id}', {'style': {'color': 'red'}}, format='json')
        self.assertEqual(patched.data, {'id': component_id, 'type': 'text', 'content': 'Hello', 'style': {'color': 'red'}})

        self.assertEqual(self.client.delete(f'/api/components/{component_id}').status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f'/api/components/{component_id}').status_code, status.HTTP_404_NOT_FOUND)

    def test_nested_lookup(self):
        response = self.client.get('/api/components/comp-5')
        self.assertEqual(response.data['content'], 'Nested Text Component')

    def test_invalid_type(self):
        response = self.client.post('/api/components', {'type': 'video'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
