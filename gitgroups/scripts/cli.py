"""
A simple CLI for running the service.
"""

import os
import sys
import time
from multiprocessing import Process

import uvicorn

USAGE = "Supported commands are gitgroups run dev, gitgroups run prod, or gitgroups setup"


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("gitgroups.api.app:app", host="0.0.0.0")


def main():
    try:
        run = sys.argv[1] == "run"
        setup = sys.argv[1] == "setup"
    except IndexError:
        print(USAGE)
        exit(1)

    if run:
        try:
            dev = sys.argv[2] == "dev"
            prod = sys.argv[2] == "prod"
        except IndexError:
            print(USAGE)
            exit(1)

        if dev:
            from testcontainers.postgres import PostgresContainer

            with PostgresContainer() as container:
                print(
                    f"Container details: username={container.username}, password={container.password}, port={container.get_exposed_port(container.port)}"
                )

                environment = {
                    "GITGROUPS_DATABASE_TYPE": "postgres",
                    "GITGROUPS_DATABASE_USER": container.username,
                    "GITGROUPS_DATABASE_PASSWORD": container.password,
                    "GITGROUPS_DATABASE_PORT": str(
                        container.get_exposed_port(container.port)
                    ),
                    "GITGROUPS_DATABASE_HOST": "localhost",
                    "GITGROUPS_DATABASE_DB": container.dbname,
                    "GITGROUPS_DATABASE_ECHO": "False",
                    "GITGROUPS_USE_MOCK_GITLAB": "True",
                    "GITGROUPS_GITLAB_ADMIN_TOKEN": "admin-token",
                }

                background_process = Process(target=run_server, kwargs=environment)
                background_process.start()

                while True:
                    time.sleep(1)

        if prod:
            from gitgroups.api.setup import initial_setup
            from gitgroups.config.settings import Settings

            initial_setup(settings=Settings())

            run_server()

    if setup:
        from gitgroups.api.setup import initial_setup
        from gitgroups.config.settings import Settings

        initial_setup(settings=Settings())

        print("Setup complete, the database tables exist")
        exit(0)

    print(USAGE)
    exit(1)
