from locust import HttpUser, task, between
import random
import uuid


class PRReviewerUser(HttpUser):
    wait_time = between(0.5, 2.0)

    def on_start(self):
        """Runs once per simulated user: its own team plus a few open PRs"""
        self.team_name = f"team_{uuid.uuid4().hex[:8]}"
        self.user_ids = [str(uuid.uuid4()) for _ in range(5)]

        team_data = {
            "team_name": self.team_name,
            "members": [
                {"user_id": uid, "username": f"User_{uid[:8]}", "is_active": True}
                for uid in self.user_ids
            ]
        }
        self.client.post("/api/team/add", json=team_data)

        self.pr_ids = []
        for i in range(3):
            pr_id = str(uuid.uuid4())
            pr_data = {
                "pull_request_id": pr_id,
                "pull_request_name": f"PR {i}",
                "author_id": random.choice(self.user_ids)
            }
            response = self.client.post("/api/pullRequest/create", json=pr_data)
            if response.status_code == 201:
                self.pr_ids.append(pr_id)

    @task(3)
    def get_team(self):
        self.client.get("/api/team/get", params={"team_name": self.team_name}, name="/api/team/get")

    @task(2)
    def get_user_reviews(self):
        user_id = random.choice(self.user_ids)
        self.client.get("/api/users/getReview", params={"user_id": user_id}, name="/api/users/getReview")

    @task(2)
    def create_pr(self):
        pr_data = {
            "pull_request_id": str(uuid.uuid4()),
            "pull_request_name": "New PR",
            "author_id": random.choice(self.user_ids)
        }
        self.client.post("/api/pullRequest/create", json=pr_data)

    @task(1)
    def merge_pr(self):
        if self.pr_ids:
            pr_id = self.pr_ids.pop(random.randrange(len(self.pr_ids)))
            self.client.post("/api/pullRequest/merge", json={"pull_request_id": pr_id})

    @task(1)
    def set_user_active(self):
        """Mostly reactivate, so the team keeps enough candidates"""
        self.client.post("/api/users/setIsActive", json={
            "user_id": random.choice(self.user_ids),
            "is_active": random.random() < 0.8
        })

    @task(1)
    def reassign_reviewer(self):
        """Find an open PR this user reviews and hand it to someone else"""
        user_id = random.choice(self.user_ids)
        response = self.client.get("/api/users/getReview", params={"user_id": user_id}, name="/api/users/getReview")
        if response.status_code != 200:
            return
        open_prs = [pr for pr in response.json().get("pull_requests", []) if pr["status"] == "OPEN"]
        if not open_prs:
            return
        pr = random.choice(open_prs)
        with self.client.post("/api/pullRequest/reassign", json={
            "pull_request_id": pr["pull_request_id"],
            "old_user_id": user_id,
        }, catch_response=True) as reassign:
            # losing a race or running out of candidates is expected under load
            if reassign.status_code in (200, 409):
                reassign.success()
