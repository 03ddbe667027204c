"""
Test the spreadsheet export and upload parsing.
"""
from io import BytesIO

import pandas as pd
from django.test import TestCase

from allocation.recommendation import Assignment, Recommendation, SOURCE_FALLBACK
from allocation.spreadsheets import read_allocation_rows, recommendation_to_excel
from users.factory import LecturerFactory, StudentFactory


class RecommendationExportTestCase(TestCase):
    def test_empty_recommendation_is_valid_workbook(self):
        payload = recommendation_to_excel(Recommendation())
        sheets = pd.read_excel(BytesIO(payload), sheet_name=None)
        self.assertEqual(set(sheets), {'Recommendations', 'Unallocated', 'Summary'})
        self.assertEqual(sheets['Recommendations'].iloc[0]['Student Code'], 'No data')

    def test_rows_use_codes(self):
        student = StudentFactory(code='S001')
        lecturer = LecturerFactory(code='L001')
        rec = Recommendation(assignments=[
            Assignment(student_id=student.pk, lecturer_id=lecturer.pk, topic_title='AI', source=SOURCE_FALLBACK),
        ])
        sheet = pd.read_excel(BytesIO(recommendation_to_excel(rec)), sheet_name='Recommendations')
        row = sheet.iloc[0]
        self.assertEqual(row['Student Code'], 'S001')
        self.assertEqual(row['Lecturer Code'], 'L001')
        self.assertEqual(row['Source'], 'fallback')


class ReadAllocationRowsTestCase(TestCase):
    def _sheet(self, rows):
        buffer = BytesIO()
        pd.DataFrame(rows).to_excel(buffer, index=False, engine='openpyxl')
        buffer.seek(0)
        return buffer

    def test_header_synonyms_and_usernames(self):
        student = StudentFactory(code='S010')
        lecturer = LecturerFactory()
        rows = read_allocation_rows(self._sheet([
            {'student': 'S010', 'Supervisor': lecturer.username},
            {'student': '', 'Supervisor': lecturer.username},
        ]))
        self.assertEqual(rows, [{'student_id': student.pk, 'lecturer_id': lecturer.pk, 'topic_title': ''}])

    def test_unknown_codes(self):
        LecturerFactory(code='L777')
        with self.assertRaises(ValueError) as cm:
            read_allocation_rows(self._sheet([{'Student Code': 'NOPE', 'Lecturer Code': 'L777'}]))
        self.assertIn('NOPE', str(cm.exception))
