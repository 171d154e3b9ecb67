pytest_plugins = [
    "tests.fixtures.aws_fixtures",
]
