from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from accounts.models import Role, UserStatus

User = get_user_model()


class CustomUserModelTest(TestCase):
    def test_create_user_defaults(self):
        user = User.objects.create_user(
            email='test@example.com',
            name='John Doe',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')
        self.assertEqual(user.role, Role.MEMBER)
        self.assertEqual(user.status, UserStatus.ACTIVE)
        self.assertTrue(user.is_active)
        self.assertTrue(user.check_password('testpass123'))

    def test_email_uniqueness(self):
        User.objects.create_user(email='test@example.com', name='John', password='testpass123')
        with self.assertRaises(Exception):  # email is unique
            User.objects.create_user(email='test@example.com', name='Jane', password='testpass123')

    def test_inactive_status_disables_account(self):
        user = User.objects.create_user(
            email='test@example.com', name='John', password='testpass123', status=UserStatus.INACTIVE
        )
        self.assertFalse(user.is_active)

    def test_create_superuser_is_admin(self):
        user = User.objects.create_superuser(email='root@example.com', name='Root', password='testpass123')
        self.assertEqual(user.role, Role.ADMIN)
        self.assertTrue(user.is_staff)


class SeedUsersCommandTest(TestCase):
    def test_seed_users_is_idempotent(self):
        call_command('seed_users', stdout=StringIO())
        call_command('seed_users', stdout=StringIO())
        self.assertEqual(User.objects.count(), 2)
        self.assertEqual(User.objects.get(email='admin@example.com').role, Role.ADMIN)
        self.assertEqual(User.objects.get(email='member@example.com').role, Role.MEMBER)


class TokenAuthTest(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(email='test@example.com', name='John', password='testpass123')

    def test_obtain_token_and_read_me(self):
        response = self.client.post(
            reverse('token_obtain_pair'),
            {'email': 'test@example.com', 'password': 'testpass123'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")

        response = self.client.get(reverse('me'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'success')
        self.assertEqual(response.data['data']['email'], 'test@example.com')
        self.assertNotIn('password', response.data['data'])

    def test_wrong_password_is_rejected(self):
        response = self.client.post(
            reverse('token_obtain_pair'),
            {'email': 'test@example.com', 'password': 'wrong'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_inactive_user_cannot_obtain_token(self):
        self.user.status = UserStatus.INACTIVE
        self.user.save()
        response = self.client.post(
            reverse('token_obtain_pair'),
            {'email': 'test@example.com', 'password': 'testpass123'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get(reverse('me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'error')


class UserManagementViewTest(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            email='admin@example.com', name='Admin', password='testpass123', role=Role.ADMIN
        )
        self.member = User.objects.create_user(email='member@example.com', name='Member', password='testpass123')
        self.list_url = reverse('user-list-create')

    def test_member_cannot_list_users(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['status'], 'error')

    def test_anonymous_cannot_list_users(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_creates_user(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'name': 'New Person',
            'email': 'new@example.com',
            'password': 'secret123',
            'role': 'member',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'User created successfully')
        self.assertEqual(response.data['data']['status'], UserStatus.ACTIVE)
        self.assertTrue(User.objects.get(email='new@example.com').check_password('secret123'))

    def test_create_user_validation(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.list_url, {
            'name': 'Dup',
            'email': 'member@example.com',
            'password': '123',
            'role': 'owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['message'], 'Validation failed')
        for field in ('email', 'password', 'role'):
            self.assertIn(field, response.data['errors'])

    def test_update_keeps_password_when_not_supplied(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            reverse('user-detail', args=[self.member.pk]), {'name': 'Renamed'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertEqual(self.member.name, 'Renamed')
        self.assertTrue(self.member.check_password('testpass123'))

    def test_unknown_user_is_not_found(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('user-detail', args=[9999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'User not found')

    def test_admin_cannot_delete_self(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('user-detail', args=[self.admin.pk]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_member_cannot_delete_anyone(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.delete(reverse('user-detail', args=[self.admin.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_deletes_other_user(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('user-detail', args=[self.member.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.member.pk).exists())

    def test_toggle_status(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse('user-toggle-status', args=[self.member.pk])

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], UserStatus.INACTIVE)

        response = self.client.post(url)
        self.assertEqual(response.data['data']['status'], UserStatus.ACTIVE)

    def test_toggle_own_status_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(reverse('user-toggle-status', args=[self.admin.pk]))
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.status, UserStatus.ACTIVE)

    def test_update_cannot_deactivate_own_account(self):
        self.client.force_authenticate(user=self.admin)
        url = reverse('user-detail', args=[self.admin.pk])

        for method in (self.client.put, self.client.patch):
            response = method(url, {'status': 'inactive'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
            self.assertIn('status', response.data['errors'])
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.status, UserStatus.ACTIVE)

        response = self.client.patch(url, {'name': 'Still Admin', 'status': 'active'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_update_can_deactivate_other_user(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(
            reverse('user-detail', args=[self.member.pk]), {'status': 'inactive'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.member.refresh_from_db()
        self.assertEqual(self.member.status, UserStatus.INACTIVE)

    def test_search_and_role_filter(self):
        User.objects.create_user(email='carol@corp.io', name='Carol', password='testpass123')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(self.list_url, {'search': 'corp'})
        emails = [row['email'] for row in response.data['data']['results']]
        self.assertEqual(emails, ['carol@corp.io'])

        response = self.client.get(self.list_url, {'role': 'admin'})
        emails = [row['email'] for row in response.data['data']['results']]
        self.assertEqual(emails, ['admin@example.com'])

    def test_invalid_role_filter_is_rejected(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.list_url, {'role': 'owner'})
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_list_is_paginated_newest_first(self):
        for i in range(11):
            User.objects.create_user(email=f'user{i}@example.com', name=f'User {i}', password='testpass123')
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(self.list_url)
        page = response.data['data']
        self.assertEqual(page['total'], 13)
        self.assertEqual(page['per_page'], 10)
        self.assertEqual(page['last_page'], 2)
        self.assertEqual(page['results'][0]['email'], 'user10@example.com')

        response = self.client.get(self.list_url, {'page': 2})
        self.assertEqual(len(response.data['data']['results']), 3)
