from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role
from projects import membership
from projects.models import Project
from tasks.models import Comment, Priority, Task, TaskStatus
from tasks.stats import days_until_due, is_overdue

User = get_user_model()


class TaskModelTest(TestCase):
    def test_task_default_values(self):
        project = Project.objects.create(name='Alpha')
        task = Task.objects.create(project=project, title='Review code')
        self.assertEqual(task.status, TaskStatus.PENDING)
        self.assertEqual(task.priority, Priority.MEDIUM)
        self.assertIsNone(task.assigned_to)
        self.assertIsNone(task.due_date)

    def test_creator_deletion_keeps_task(self):
        user = User.objects.create_user(email='test@example.com', name='John', password='testpass123')
        project = Project.objects.create(name='Alpha')
        task = Task.objects.create(project=project, title='Review code', created_by=user)
        user.delete()
        task.refresh_from_db()
        self.assertIsNone(task.created_by)


class TaskStatsTest(TestCase):
    def setUp(self):
        self.today = date(2030, 6, 15)

    def test_is_overdue(self):
        self.assertTrue(is_overdue(date(2030, 6, 14), TaskStatus.PENDING, self.today))
        self.assertFalse(is_overdue(date(2030, 6, 14), TaskStatus.COMPLETED, self.today))
        self.assertFalse(is_overdue(self.today, TaskStatus.IN_PROGRESS, self.today))
        self.assertFalse(is_overdue(None, TaskStatus.PENDING, self.today))

    def test_days_until_due(self):
        self.assertEqual(days_until_due(date(2030, 6, 20), TaskStatus.PENDING, self.today), 5)
        self.assertEqual(days_until_due(date(2030, 6, 13), TaskStatus.PENDING, self.today), -2)
        self.assertIsNone(days_until_due(date(2030, 6, 20), TaskStatus.COMPLETED, self.today))
        self.assertIsNone(days_until_due(None, TaskStatus.PENDING, self.today))


class TaskViewTest(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', name='Admin', password='testpass123', role=Role.ADMIN
        )
        self.member = User.objects.create_user(email='member@example.com', name='Member', password='testpass123')
        self.outsider = User.objects.create_user(email='outsider@example.com', name='Outsider', password='testpass123')
        self.project = Project.objects.create(name='Alpha', created_by=self.admin)
        membership.attach(self.project, [self.member.pk])
        self.other_project = Project.objects.create(name='Beta', created_by=self.admin)
        self.list_url = reverse('task-list-create')
        self.tomorrow = timezone.localdate() + timedelta(days=1)

    def test_member_creates_task_in_own_project(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(self.list_url, {
            'project_id': self.project.pk,
            'status': 'pending',
            'priority': 'medium',
            'title': 'Write docs',
            'due_date': self.tomorrow.isoformat(),
            'assigned_to': self.member.pk,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['created_by']['id'], self.member.pk)
        self.assertEqual(data['assigned_to']['id'], self.member.pk)
        self.assertEqual(data['days_until_due'], 1)
        self.assertFalse(data['is_overdue'])

    def test_member_cannot_create_task_elsewhere(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(self.list_url, {
            'project_id': self.other_project.pk,
            'status': 'pending',
            'priority': 'medium',
            'title': 'Sneaky',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Task.objects.exists())

    def test_past_due_date_on_create_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'project_id': self.project.pk,
            'status': 'pending',
            'priority': 'medium',
            'title': 'Too late',
            'due_date': (timezone.localdate() - timedelta(days=3)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('due_date', response.data['errors'])

    def test_due_date_today_on_create_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'project_id': self.project.pk,
            'status': 'pending',
            'priority': 'medium',
            'title': 'Today',
            'due_date': timezone.localdate().isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_update_accepts_past_due_date(self):
        task = Task.objects.create(project=self.project, title='Old', created_by=self.admin)
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(reverse('task-detail', args=[task.pk]), {
            'due_date': '2000-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['is_overdue'])

    def test_create_requires_project_and_title(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('project_id', response.data['errors'])
        self.assertIn('title', response.data['errors'])
        self.assertIn('status', response.data['errors'])
        self.assertIn('priority', response.data['errors'])

    def test_create_with_non_member_assignee_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'project_id': self.project.pk,
            'status': 'pending',
            'priority': 'medium',
            'title': 'Write docs',
            'assigned_to': self.outsider.pk,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('assigned_to', response.data['errors'])

    def test_assign_to_non_member_leaves_task_unchanged(self):
        task = Task.objects.create(project=self.project, title='Write docs', assigned_to=self.member)
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            reverse('task-assign', args=[task.pk]), {'assigned_to': self.outsider.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('assigned_to', response.data['errors'])
        task.refresh_from_db()
        self.assertEqual(task.assigned_to, self.member)

    def test_assign_and_unassign(self):
        task = Task.objects.create(project=self.project, title='Write docs')
        url = reverse('task-assign', args=[task.pk])
        self.client.force_authenticate(user=self.member)

        response = self.client.post(url, {'assigned_to': self.member.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['assigned_to']['id'], self.member.pk)

        response = self.client.post(url, {'assigned_to': None}, format='json')
        self.assertIsNone(response.data['data']['assigned_to'])

    def test_assign_unknown_user(self):
        task = Task.objects.create(project=self.project, title='Write docs')
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(reverse('task-assign', args=[task.pk]), {'assigned_to': 9999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_moving_task_revalidates_assignee(self):
        task = Task.objects.create(project=self.project, title='Write docs', assigned_to=self.member)
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse('task-detail', args=[task.pk]), {'project_id': self.other_project.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        task.refresh_from_db()
        self.assertEqual(task.project, self.project)

        response = self.client.patch(
            reverse('task-detail', args=[task.pk]),
            {'project_id': self.other_project.pk, 'assigned_to': None},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.project, self.other_project)

    def test_member_cannot_move_task_to_foreign_project(self):
        task = Task.objects.create(project=self.project, title='Write docs')
        self.client.force_authenticate(user=self.member)
        response = self.client.patch(
            reverse('task-detail', args=[task.pk]), {'project_id': self.other_project.pk}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_visibility(self):
        visible = Task.objects.create(project=self.project, title='In my project')
        assigned = Task.objects.create(project=self.other_project, title='Assigned to me')
        hidden = Task.objects.create(project=self.other_project, title='Hidden')
        # Assignment outside membership can only exist through direct writes
        Task.objects.filter(pk=assigned.pk).update(assigned_to=self.member)

        self.client.force_authenticate(user=self.member)
        response = self.client.get(self.list_url)
        titles = {row['title'] for row in response.data['data']['results']}
        self.assertEqual(titles, {'In my project', 'Assigned to me'})

        self.assertEqual(self.client.get(reverse('task-detail', args=[visible.pk])).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(reverse('task-detail', args=[assigned.pk])).status_code, status.HTTP_200_OK)
        self.assertEqual(
            self.client.get(reverse('task-detail', args=[hidden.pk])).status_code, status.HTTP_403_FORBIDDEN
        )
        self.assertEqual(self.client.get(reverse('task-detail', args=[9999])).status_code, status.HTTP_404_NOT_FOUND)

    def test_filters(self):
        Task.objects.create(project=self.project, title='Urgent fix', priority=Priority.HIGH, assigned_to=self.member)
        Task.objects.create(project=self.project, title='Minor fix', priority=Priority.LOW)
        Task.objects.create(
            project=self.other_project, title='Late report', due_date=timezone.localdate() - timedelta(days=2)
        )
        self.client.force_authenticate(user=self.admin)

        def titles(params):
            response = self.client.get(self.list_url, params)
            return [row['title'] for row in response.data['data']['results']]

        self.assertEqual(titles({'search': 'fix', 'priority': 'high'}), ['Urgent fix'])
        self.assertEqual(titles({'assigned_to': self.member.pk}), ['Urgent fix'])
        self.assertEqual(titles({'project_id': self.other_project.pk}), ['Late report'])
        self.assertEqual(titles({'overdue': 'true'}), ['Late report'])
        self.assertEqual(titles({'project_id': 9999}), [])

        for params in ({'project_id': '1.7'}, {'assigned_to': 'abc'}):
            response = self.client.get(self.list_url, params)
            self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
            self.assertIn(next(iter(params)), response.data['errors'])

        response = self.client.get(self.list_url, {'status': 'blocked'})
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_delete_rules(self):
        task = Task.objects.create(project=self.project, title='By admin', created_by=self.admin)
        own = Task.objects.create(project=self.project, title='By member', created_by=self.member)
        self.client.force_authenticate(user=self.member)

        response = self.client.delete(reverse('task-detail', args=[task.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

        response = self.client.delete(reverse('task-detail', args=[own.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Task.objects.filter(pk=own.pk).exists())

    def test_my_tasks(self):
        Task.objects.create(project=self.project, title='Mine', assigned_to=self.member)
        Task.objects.create(project=self.project, title='Unassigned')
        self.client.force_authenticate(user=self.member)
        response = self.client.get(reverse('my-tasks'))
        self.assertEqual([row['title'] for row in response.data['data']['results']], ['Mine'])

    def test_project_tasks(self):
        Task.objects.create(project=self.project, title='Alpha task')
        Task.objects.create(project=self.other_project, title='Beta task')
        self.client.force_authenticate(user=self.member)

        response = self.client.get(reverse('project-tasks', args=[self.project.pk]))
        self.assertEqual([row['title'] for row in response.data['data']['results']], ['Alpha task'])

        response = self.client.get(reverse('project-tasks', args=[self.other_project.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_comments(self):
        task = Task.objects.create(project=self.project, title='Discuss')
        url = reverse('task-comments', args=[task.pk])
        self.client.force_authenticate(user=self.member)

        response = self.client.post(url, {'content': 'Looks good'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['user']['id'], self.member.pk)

        response = self.client.post(url, {'content': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        response = self.client.get(url)
        self.assertEqual(response.data['data']['total'], 1)

        detail = self.client.get(reverse('task-detail', args=[task.pk])).data['data']
        self.assertEqual([c['content'] for c in detail['comments']], ['Looks good'])

        self.client.force_authenticate(user=self.outsider)
        response = self.client.post(url, {'content': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Comment.objects.count(), 1)
