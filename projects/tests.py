from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from accounts.models import Role
from projects import membership
from projects.models import Project, ProjectMembership, ProjectStatus
from projects.stats import project_progress, with_task_counts
from tasks.models import Task, TaskStatus

User = get_user_model()


class ProjectModelTest(TestCase):
    def test_project_defaults(self):
        project = Project.objects.create(name='Alpha')
        self.assertEqual(project.status, ProjectStatus.PENDING)
        self.assertIsNone(project.description)
        self.assertEqual(project.members.count(), 0)

    def test_membership_pair_is_unique(self):
        user = User.objects.create_user(email='a@example.com', name='A', password='testpass123')
        project = Project.objects.create(name='Alpha')
        ProjectMembership.objects.create(project=project, user=user)
        with self.assertRaises(Exception):
            ProjectMembership.objects.create(project=project, user=user)


class ProjectStatsTest(TestCase):
    def test_progress_of_empty_project_is_zero(self):
        self.assertEqual(project_progress(0, 0), 0)

    def test_progress_is_rounded_percentage(self):
        self.assertEqual(project_progress(3, 1), 33.33)
        self.assertEqual(project_progress(4, 4), 100)

    def test_task_counts_annotation(self):
        project = Project.objects.create(name='Alpha')
        yesterday = timezone.localdate() - timedelta(days=1)
        Task.objects.create(project=project, title='Done', status=TaskStatus.COMPLETED, due_date=yesterday)
        Task.objects.create(project=project, title='Late', due_date=yesterday)
        Task.objects.create(project=project, title='Open')

        annotated = with_task_counts(Project.objects.filter(pk=project.pk)).get()
        self.assertEqual(annotated.task_total, 3)
        self.assertEqual(annotated.task_completed, 1)
        self.assertEqual(annotated.task_overdue, 1)


class MembershipManagerTest(TestCase):
    def setUp(self):
        self.project = Project.objects.create(name='Alpha')
        self.users = [
            User.objects.create_user(email=f'user{i}@example.com', name=f'User {i}', password='testpass123')
            for i in range(3)
        ]
        self.ids = [user.pk for user in self.users]

    def test_attach_is_idempotent(self):
        membership.attach(self.project, [self.ids[0], self.ids[1]])
        membership.attach(self.project, [self.ids[0], self.ids[1], self.ids[1]])
        self.assertEqual(membership.member_ids(self.project), {self.ids[0], self.ids[1]})
        self.assertEqual(ProjectMembership.objects.filter(project=self.project).count(), 2)

    def test_sync_makes_membership_exact(self):
        membership.attach(self.project, [self.ids[0], self.ids[1]])
        membership.sync(self.project, [self.ids[1], self.ids[2]])
        self.assertEqual(membership.member_ids(self.project), {self.ids[1], self.ids[2]})

    def test_sync_with_empty_list_or_none_detaches_everyone(self):
        membership.attach(self.project, self.ids)
        membership.sync(self.project, [])
        self.assertEqual(membership.member_ids(self.project), set())

        membership.attach(self.project, self.ids)
        membership.sync(self.project, None)
        self.assertEqual(membership.member_ids(self.project), set())

    def test_detach_ignores_non_members(self):
        membership.attach(self.project, [self.ids[0]])
        membership.detach(self.project, [self.ids[0], self.ids[1]])
        self.assertEqual(membership.member_ids(self.project), set())

    def test_unknown_id_rejects_whole_call(self):
        membership.attach(self.project, [self.ids[0]])
        with self.assertRaises(ValidationError) as ctx:
            membership.attach(self.project, [self.ids[1], 9999])
        self.assertIn('9999', str(ctx.exception.detail['user_ids']))
        self.assertEqual(membership.member_ids(self.project), {self.ids[0]})

        with self.assertRaises(ValidationError):
            membership.sync(self.project, [self.ids[2], 9999])
        self.assertEqual(membership.member_ids(self.project), {self.ids[0]})

    def test_removing_member_clears_their_assignments(self):
        membership.attach(self.project, [self.ids[0], self.ids[1]])
        task = Task.objects.create(project=self.project, title='Write docs', assigned_to=self.users[0])
        kept = Task.objects.create(project=self.project, title='Review', assigned_to=self.users[1])

        membership.detach(self.project, [self.ids[0]])
        task.refresh_from_db()
        kept.refresh_from_db()
        self.assertIsNone(task.assigned_to)
        self.assertEqual(kept.assigned_to, self.users[1])


class ProjectViewTest(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', name='Admin', password='testpass123', role=Role.ADMIN
        )
        self.member = User.objects.create_user(email='member@example.com', name='Member', password='testpass123')
        self.other = User.objects.create_user(email='other@example.com', name='Other', password='testpass123')
        self.list_url = reverse('project-list-create')

    def create_project(self, **extra):
        project = Project.objects.create(name=extra.pop('name', 'Project'), created_by=self.admin, **extra)
        return project

    def test_admin_creates_project_without_members(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {'name': 'Alpha', 'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['members'], [])
        self.assertEqual(response.data['data']['progress'], 0)
        self.assertEqual(response.data['data']['created_by']['id'], self.admin.pk)

        project_id = response.data['data']['id']
        self.client.force_authenticate(user=self.member)
        response = self.client.get(reverse('project-detail', args=[project_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['status'], 'error')

    def test_create_with_members(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.list_url, {'name': 'Alpha', 'status': 'pending', 'member_ids': [self.member.pk]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([m['id'] for m in response.data['data']['members']], [self.member.pk])

    def test_create_with_unknown_member_writes_nothing(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.list_url, {'name': 'Alpha', 'status': 'pending', 'member_ids': [self.member.pk, 9999]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('member_ids', response.data['errors'])
        self.assertFalse(Project.objects.exists())

    def test_create_requires_status(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {'name': 'Alpha'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('status', response.data['errors'])
        self.assertFalse(Project.objects.exists())

    def test_member_cannot_create_project(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(self.list_url, {'name': 'Alpha', 'status': 'pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_end_date_before_start_date_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'name': 'Alpha',
            'status': 'pending',
            'start_date': '2030-05-10',
            'end_date': '2030-05-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('end_date', response.data['errors'])

    def test_update_checks_dates_against_stored_values(self):
        project = self.create_project(start_date='2030-05-10')
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse('project-detail', args=[project.pk]), {'end_date': '2030-05-01'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_update_member_ids_semantics(self):
        project = self.create_project()
        membership.attach(project, [self.member.pk])
        url = reverse('project-detail', args=[project.pk])
        self.client.force_authenticate(user=self.admin)

        # absent leaves membership untouched
        self.client.put(url, {'status': 'in_progress'}, format='json')
        self.assertEqual(membership.member_ids(project), {self.member.pk})

        self.client.put(url, {'member_ids': [self.other.pk]}, format='json')
        self.assertEqual(membership.member_ids(project), {self.other.pk})

        response = self.client.put(url, {'member_ids': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(membership.member_ids(project), set())
        project.refresh_from_db()
        self.assertEqual(project.status, ProjectStatus.IN_PROGRESS)

    def test_explicit_null_clears_description(self):
        project = self.create_project(description='Something')
        self.client.force_authenticate(user=self.admin)
        self.client.patch(reverse('project-detail', args=[project.pk]), {'description': None}, format='json')
        project.refresh_from_db()
        self.assertIsNone(project.description)

    def test_member_cannot_update_or_delete(self):
        project = self.create_project()
        membership.attach(project, [self.member.pk])
        url = reverse('project-detail', args=[project.pk])
        self.client.force_authenticate(user=self.member)

        self.assertEqual(self.client.patch(url, {'name': 'X'}, format='json').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(pk=project.pk).exists())

    def test_admin_deletes_project_and_its_tasks(self):
        project = self.create_project()
        Task.objects.create(project=project, title='Gone')
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('project-detail', args=[project.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Task.objects.exists())

    def test_unknown_project_is_not_found(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('project-detail', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Project not found')

    def test_member_sees_only_own_projects(self):
        mine = self.create_project(name='Mine')
        self.create_project(name='Theirs')
        membership.attach(mine, [self.member.pk])

        self.client.force_authenticate(user=self.member)
        response = self.client.get(self.list_url)
        names = [row['name'] for row in response.data['data']['results']]
        self.assertEqual(names, ['Mine'])

        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.list_url)
        self.assertEqual(response.data['data']['total'], 2)

    def test_search_and_status_filter(self):
        self.create_project(name='Website redesign', status=ProjectStatus.IN_PROGRESS)
        self.create_project(name='Mobile app', description='Redesign of the app')
        self.create_project(name='Backoffice')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(self.list_url, {'search': 'REDESIGN'})
        self.assertEqual(response.data['data']['total'], 2)

        response = self.client.get(self.list_url, {'search': 'redesign', 'status': 'in_progress'})
        names = [row['name'] for row in response.data['data']['results']]
        self.assertEqual(names, ['Website redesign'])

        response = self.client.get(self.list_url, {'status': 'archived'})
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_second_page_continues_first(self):
        for i in range(15):
            self.create_project(name=f'Project {i}')
        self.client.force_authenticate(user=self.admin)

        first = self.client.get(self.list_url).data['data']
        second = self.client.get(self.list_url, {'page': 2}).data['data']
        self.assertEqual(len(first['results']), 10)
        self.assertEqual(len(second['results']), 5)
        self.assertEqual(first['last_page'], 2)

        names = [row['name'] for row in first['results'] + second['results']]
        self.assertEqual(names, [f'Project {i}' for i in range(14, -1, -1)])

    def test_members_endpoints(self):
        project = self.create_project()
        url = reverse('project-members', args=[project.pk])
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(url, {'user_ids': [self.member.pk, self.other.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['data']), 2)

        response = self.client.post(url, {'user_ids': [9999]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        response = self.client.delete(reverse('project-member-remove', args=[project.pk, self.other.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(membership.member_ids(project), {self.member.pk})

        response = self.client.delete(reverse('project-member-remove', args=[project.pk, 9999]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        self.client.force_authenticate(user=self.member)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['id'] for m in response.data['data']], [self.member.pk])

        response = self.client.post(url, {'user_ids': [self.other.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_reports_progress_and_overdue(self):
        project = self.create_project()
        yesterday = timezone.localdate() - timedelta(days=1)
        Task.objects.create(project=project, title='Done', status=TaskStatus.COMPLETED)
        Task.objects.create(project=project, title='Late', due_date=yesterday)
        self.client.force_authenticate(user=self.admin)

        data = self.client.get(reverse('project-detail', args=[project.pk])).data['data']
        self.assertEqual(data['tasks_count'], 2)
        self.assertEqual(data['progress'], 50)
        self.assertEqual(data['overdue_tasks_count'], 1)
