"""
Tests for enrollment endpoints
"""

from fastapi import status


def enroll_url(course):
    return f"/api/v1/courses/{course['id']}/enroll"


class TestEnroll:
    """Test enrolling in a course"""

    def test_enroll(self, client, db, course, student, auth_headers):
        response = client.post(enroll_url(course), headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Successfully enrolled in course"
        assert data["enrollment"]["status"] == "active"

        stored = db.rows("enrollments")
        assert len(stored) == 1
        assert stored[0]["user_id"] == student["id"]

    def test_already_enrolled(self, client, course, student, enroll, auth_headers):
        enroll(student, course)

        response = client.post(enroll_url(course), headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Already enrolled in this course"

    def test_enrollment_disabled(self, client, make_course, auth_headers):
        closed = make_course(enrollment_enabled=False)

        response = client.post(enroll_url(closed), headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Enrollment is not enabled for this course"

    def test_course_full(self, client, make_course, make_user, enroll, auth_headers):
        small = make_course(max_students=1)
        enroll(make_user("early"), small)

        response = client.post(enroll_url(small), headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Course is full"

    def test_unenrolled_students_free_their_seat(self, client, make_course, make_user, enroll, auth_headers):
        small = make_course(max_students=1)
        enroll(make_user("leaver"), small, status="unenrolled")

        response = client.post(enroll_url(small), headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK

    def test_re_enroll_after_unenrolling(self, client, course, student, enroll, auth_headers):
        enroll(student, course, status="unenrolled")

        response = client.post(enroll_url(course), headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK

    def test_course_not_found(self, client, auth_headers):
        response = client.post("/api/v1/courses/missing/enroll", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Course not found"

    def test_requires_authentication(self, client, course):
        response = client.post(enroll_url(course))

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


class TestUnenroll:
    """Test leaving a course"""

    def test_unenroll(self, client, db, course, student, enroll, auth_headers):
        enroll(student, course)

        response = client.delete(enroll_url(course), headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Successfully unenrolled from course"
        assert db.rows("enrollments")[0]["status"] == "unenrolled"

    def test_not_enrolled(self, client, course, auth_headers):
        response = client.delete(enroll_url(course), headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Not enrolled in this course"


class TestMyEnrollments:
    """Test listing the current user's enrollments"""

    def test_active_enrollments_with_course(self, client, make_course, student, enroll, auth_headers):
        first = make_course(full_name="First")
        second = make_course(full_name="Second")
        dropped = make_course(full_name="Dropped")
        enroll(student, first, enrolled_at="2024-02-01T10:00:00+00:00")
        enroll(student, second, enrolled_at="2024-02-03T10:00:00+00:00")
        enroll(student, dropped, status="unenrolled")

        response = client.get("/api/v1/my-enrollments", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        enrollments = response.json()["enrollments"]
        assert [item["course"]["full_name"] for item in enrollments] == ["Second", "First"]
        assert enrollments[0]["course"]["category"]["name"] == "Programming"

    def test_no_enrollments(self, client, auth_headers):
        response = client.get("/api/v1/my-enrollments", headers=auth_headers)

        assert response.json() == {"enrollments": []}
