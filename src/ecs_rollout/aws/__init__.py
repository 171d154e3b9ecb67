"""ECS task definition and service operations, client management and error taxonomy."""
