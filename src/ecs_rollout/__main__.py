from ecs_rollout.cli import main

main()
