from .cli_git import GitError, current_github_repository, parse_github_remote

__all__ = ["GitError", "current_github_repository", "parse_github_remote"]
