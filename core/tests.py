from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from accounts.models import Role
from core import policies
from core.exceptions import AccessDenied, NotFound, ValidationFailed, envelope_exception_handler
from core.query import Resource, build_query, equality_q, search_q
from projects.models import Project, ProjectMembership
from tasks.models import Task, TaskStatus

User = get_user_model()


class QueryBuilderTest(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', name='Admin', password='testpass123', role=Role.ADMIN
        )
        self.member = User.objects.create_user(email='member@example.com', name='Member', password='testpass123')
        self.alpha = Project.objects.create(name='Alpha launch', description='Go to market')
        self.beta = Project.objects.create(name='Beta', description='Internal tooling')
        ProjectMembership.objects.create(project=self.alpha, user=self.member)

    def test_blank_search_and_empty_filters_match_everything(self):
        self.assertEqual(Project.objects.filter(search_q(Resource.PROJECT, '   ')).count(), 2)
        self.assertEqual(Project.objects.filter(equality_q({'status': None, 'name': ''})).count(), 2)

    def test_search_is_case_insensitive_across_fields(self):
        query = search_q(Resource.PROJECT, 'TOOLING')
        self.assertEqual(list(Project.objects.filter(query)), [self.beta])

    def test_member_sees_member_projects_only(self):
        query = build_query(Resource.PROJECT, self.member)
        self.assertEqual(list(Project.objects.filter(query)), [self.alpha])

    def test_admin_is_unrestricted(self):
        query = build_query(Resource.PROJECT, self.admin)
        self.assertEqual(Project.objects.filter(query).count(), 2)

    def test_member_task_visibility(self):
        in_project = Task.objects.create(project=self.alpha, title='Plan')
        assigned = Task.objects.create(project=self.beta, title='Tooling', assigned_to=self.member)
        Task.objects.create(project=self.beta, title='Secret')

        query = build_query(Resource.TASK, self.member)
        self.assertEqual(set(Task.objects.filter(query)), {in_project, assigned})

    def test_predicates_are_and_combined(self):
        Task.objects.create(project=self.alpha, title='Plan launch', status=TaskStatus.COMPLETED)
        Task.objects.create(project=self.alpha, title='Plan budget')
        Task.objects.create(project=self.beta, title='Plan tooling', status=TaskStatus.COMPLETED)

        query = build_query(Resource.TASK, self.member, search='plan', filters={'status': TaskStatus.COMPLETED})
        titles = list(Task.objects.filter(query).values_list('title', flat=True))
        self.assertEqual(titles, ['Plan launch'])


class PolicyTest(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', name='Admin', password='testpass123', role=Role.ADMIN
        )
        self.member = User.objects.create_user(email='member@example.com', name='Member', password='testpass123')
        self.other = User.objects.create_user(email='other@example.com', name='Other', password='testpass123')
        self.project = Project.objects.create(name='Alpha')
        ProjectMembership.objects.create(project=self.project, user=self.member)

    def test_project_rules(self):
        self.assertTrue(policies.can_view_project(self.admin, self.project))
        self.assertTrue(policies.can_view_project(self.member, self.project))
        self.assertFalse(policies.can_view_project(self.other, self.project))
        self.assertTrue(policies.can_delete_project(self.admin))
        self.assertFalse(policies.can_delete_project(self.member))
        self.assertFalse(policies.can_manage_projects(self.member))

    def test_task_rules(self):
        task = Task.objects.create(project=self.project, title='Plan', created_by=self.member)
        self.assertTrue(policies.can_view_task(self.member, task))
        self.assertFalse(policies.can_view_task(self.other, task))

        task.assigned_to = self.other
        self.assertTrue(policies.can_view_task(self.other, task))

        self.assertTrue(policies.can_delete_task(self.member, task))
        self.assertTrue(policies.can_delete_task(self.admin, task))
        self.assertFalse(policies.can_delete_task(self.other, task))

    def test_create_task_needs_membership(self):
        self.assertTrue(policies.can_create_task(self.member, self.project))
        self.assertTrue(policies.can_create_task(self.admin, self.project))
        self.assertFalse(policies.can_create_task(self.other, self.project))


class EnvelopeExceptionHandlerTest(TestCase):
    def setUp(self):
        self.context = {'view': None, 'request': RequestFactory().get('/')}

    def test_validation_failure(self):
        response = envelope_exception_handler(ValidationFailed({'name': ['This field is required.']}), self.context)
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data, {
            'status': 'error',
            'message': 'Validation failed',
            'errors': {'name': ['This field is required.']},
        })

    def test_access_denied_and_not_found(self):
        response = envelope_exception_handler(AccessDenied(), self.context)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'status': 'error', 'message': 'Access denied'})

        response = envelope_exception_handler(NotFound('Task not found'), self.context)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Task not found')

    def test_unauthenticated(self):
        response = envelope_exception_handler(NotAuthenticated(), self.context)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'error')

    def test_unknown_errors_are_left_to_django(self):
        self.assertIsNone(envelope_exception_handler(RuntimeError('boom'), self.context))
