"""
Test suite for documents
Tests: folder visibility, per-folder access levels, uploads, downloads and deletion
"""
import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.exceptions import BusinessRuleError
from backend.core.models import ACCESS_READ_WRITE, ACCESS_READ_ONLY, ACCESS_NONE
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.documents.models import Document, FolderAccess
from backend.documents import services

MEDIA_ROOT = tempfile.mkdtemp(prefix='documents-tests-')


def pdf_file(name='contract.pdf', content=b'%PDF-1.4 test content'):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class FolderAccessTests(TestCase):
    """Folder access levels and visibility"""

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.admin = TestDataFactory.create_user(module_access={'documents': ACCESS_READ_WRITE})
        self.member = TestDataFactory.create_user(module_access={'documents': ACCESS_READ_ONLY})
        self.shared = TestDataFactory.create_folder('Contracts', user=self.admin)
        self.private = TestDataFactory.create_folder('Payroll', user=self.admin)
        services.set_folder_access(self.shared, [(self.member, ACCESS_READ_ONLY)], assigned_by=self.admin)

    def test_module_writers_are_folder_admins(self):
        self.assertEqual(services.folder_access_level(self.admin, self.private), services.ACCESS_ADMIN)
        self.assertTrue(services.can_edit_folder(self.admin, self.private))

    def test_member_sees_only_granted_folders(self):
        names = [folder.name for folder in services.visible_folders(self.member)]
        self.assertEqual(names, ['Contracts'])
        self.assertEqual(services.visible_folders(self.admin).count(), 2)

    def test_read_only_member_cannot_edit(self):
        self.assertTrue(services.can_view_folder(self.member, self.shared))
        self.assertFalse(services.can_edit_folder(self.member, self.shared))
        self.assertFalse(services.can_view_folder(self.member, self.private))

    def test_set_folder_access_updates_existing_entry(self):
        """Test re-assigning access updates the row instead of duplicating it"""
        services.set_folder_access(self.shared, [(self.member, ACCESS_READ_WRITE)], assigned_by=self.admin)
        self.assertEqual(FolderAccess.objects.filter(folder=self.shared, user=self.member).count(), 1)
        self.assertTrue(services.can_edit_folder(self.member, self.shared))

    def test_no_access_entry_hides_folder(self):
        services.set_folder_access(self.shared, [(self.member, ACCESS_NONE)])
        self.assertFalse(services.visible_folders(self.member).exists())


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class DocumentServiceTests(TestCase):
    """Stored file handling"""

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.folder = TestDataFactory.create_folder()

    def test_upload_records_metadata(self):
        document = services.upload_document(self.folder, pdf_file(), name='  ', user=self.user)
        self.assertEqual(document.name, 'contract.pdf')
        self.assertEqual(document.file_name, 'contract.pdf')
        self.assertEqual(document.file_type, 'application/pdf')
        self.assertEqual(document.file_size, len(b'%PDF-1.4 test content'))
        self.assertTrue(document.file.storage.exists(document.file.name))

    @override_settings(DOCUMENT_MAX_UPLOAD_BYTES=8)
    def test_upload_size_limit(self):
        with self.assertRaises(BusinessRuleError):
            services.upload_document(self.folder, pdf_file())
        self.assertFalse(Document.objects.exists())

    def test_delete_document_removes_file(self):
        document = services.upload_document(self.folder, pdf_file())
        storage, path = document.file.storage, document.file.name
        services.delete_document(document)
        self.assertFalse(storage.exists(path))
        self.assertFalse(Document.objects.exists())

    def test_delete_folder_removes_documents(self):
        document = services.upload_document(self.folder, pdf_file())
        storage, path = document.file.storage, document.file.name
        services.delete_folder(self.folder)
        self.assertFalse(storage.exists(path))
        self.assertFalse(Document.objects.exists())


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class DocumentsAPITests(TestCase):
    """Folder and document endpoints"""

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_user(module_access={'documents': ACCESS_READ_WRITE})
        self.member = TestDataFactory.create_user(module_access={'documents': ACCESS_READ_ONLY})
        self.folder = TestDataFactory.create_folder('Certificates', user=self.admin)

    def test_admin_creates_folder(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/documents/folders/', {'name': 'Invoices'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user_access_level'], services.ACCESS_ADMIN)

    def test_member_cannot_create_folder(self):
        self.client.authenticate_user(self.member)
        response = self.client.post('/api/v1/documents/folders/', {'name': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_folder_list_shows_access_level(self):
        services.set_folder_access(self.folder, [(self.member, ACCESS_READ_WRITE)])
        self.client.authenticate_user(self.member)
        response = self.client.get('/api/v1/documents/folders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['user_access_level'], ACCESS_READ_WRITE)
        self.assertEqual(response.data[0]['document_count'], 0)

    def test_member_manages_access_forbidden(self):
        self.client.authenticate_user(self.member)
        response = self.client.get(f'/api/v1/documents/folders/{self.folder.id}/access/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_sets_access(self):
        """Test access upsert via API returns the folder's entries"""
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/documents/folders/{self.folder.id}/access/', [
            {'user': self.member.id, 'access_level': ACCESS_READ_ONLY},
        ], format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['access_level'], ACCESS_READ_ONLY)

    def test_upload_requires_folder_write(self):
        """Test read-only folder members cannot upload"""
        services.set_folder_access(self.folder, [(self.member, ACCESS_READ_ONLY)])
        self.client.authenticate_user(self.member)
        response = self.client.post(f'/api/v1/documents/folders/{self.folder.id}/documents/',
                                    {'file': pdf_file()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_upload_list_and_download(self):
        """Test a member with write access can upload, list and download"""
        services.set_folder_access(self.folder, [(self.member, ACCESS_READ_WRITE)])
        self.client.authenticate_user(self.member)
        response = self.client.post(f'/api/v1/documents/folders/{self.folder.id}/documents/',
                                    {'file': pdf_file('iso.pdf', b'certificate'), 'name': 'ISO 22000'},
                                    format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'ISO 22000')
        document_id = response.data['id']

        response = self.client.get(f'/api/v1/documents/folders/{self.folder.id}/documents/')
        self.assertEqual([doc['id'] for doc in response.data], [document_id])

        response = self.client.get(f'/api/v1/documents/{document_id}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(b''.join(response.streaming_content), b'certificate')
        self.assertIn('attachment', response['Content-Disposition'])
        response.close()

    def test_outsider_cannot_read_document(self):
        document = services.upload_document(self.folder, pdf_file())
        self.client.authenticate_user(self.member)
        response = self.client.get(f'/api/v1/documents/{document.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_without_module_access(self):
        outsider = TestDataFactory.create_user()
        self.client.authenticate_user(outsider)
        response = self.client.get('/api/v1/documents/folders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
