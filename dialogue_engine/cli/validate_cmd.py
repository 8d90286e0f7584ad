"""
Validation report for dialogue trees with precise issue locations.

Uses DialogueValidator for the checks; this module only formats the results.
"""

import click

from dialogue_engine.tree.validator import DialogueValidator, ValidationIssue


# ANSI color codes for terminal output
class Colors:
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def report_results(validator: DialogueValidator, name: str, detailed: bool = False):
    """Report validation results"""
    click.echo(f"\n{Colors.BOLD}{'=' * 80}{Colors.RESET}")
    click.echo(f"{Colors.BOLD}VALIDATION REPORT: {Colors.CYAN}{name}{Colors.RESET}")
    click.echo(f"{Colors.BOLD}{'=' * 80}{Colors.RESET}")

    if not validator.errors and not validator.warnings:
        click.echo(f"\n{Colors.GREEN}{Colors.BOLD}✅ VALIDATION PASSED - No issues found!{Colors.RESET}")
        if detailed:
            print_statistics(validator)
        return

    if validator.errors:
        click.echo(f"\n{Colors.RED}{Colors.BOLD}❌ ERRORS ({len(validator.errors)}):{Colors.RESET}")
        click.echo(f"{Colors.RED}{'━' * 60}{Colors.RESET}")
        for error in validator.errors:
            print_issue(error)

    if validator.warnings:
        click.echo(f"\n{Colors.YELLOW}{Colors.BOLD}⚠️  WARNINGS ({len(validator.warnings)}):{Colors.RESET}")
        click.echo(f"{Colors.YELLOW}{'━' * 60}{Colors.RESET}")
        for warning in validator.warnings:
            print_issue(warning)

    click.echo(f"\n{Colors.BOLD}{'=' * 80}{Colors.RESET}")
    error_text = f"{Colors.RED}{len(validator.errors)} error(s){Colors.RESET}"
    warning_text = f"{Colors.YELLOW}{len(validator.warnings)} warning(s){Colors.RESET}"
    click.echo(f"{Colors.BOLD}Summary:{Colors.RESET} {error_text}, {warning_text}")

    if validator.errors:
        click.echo(f"{Colors.RED}{Colors.BOLD}❌ VALIDATION FAILED{Colors.RESET}")
    else:
        click.echo(f"{Colors.GREEN}{Colors.BOLD}✅ VALIDATION PASSED WITH WARNINGS{Colors.RESET}")

    if detailed:
        print_statistics(validator)


def print_issue(issue: ValidationIssue):
    """Print a single issue with its location"""
    color = Colors.RED if issue.severity == "error" else Colors.YELLOW
    click.echo(f"\n  {color}{Colors.BOLD}{issue.location}{Colors.RESET} - {Colors.BOLD}{issue.message}{Colors.RESET}")
    if issue.suggestion:
        click.echo(f"    {Colors.CYAN}💡 Suggestion:{Colors.RESET} {issue.suggestion}")


def print_statistics(validator: DialogueValidator):
    """Print tree statistics"""
    tree = validator.tree
    click.echo(f"\n{Colors.BOLD}{Colors.BLUE}📊 STATISTICS:{Colors.RESET}")
    click.echo(f"{Colors.BLUE}{'─' * 40}{Colors.RESET}")
    click.echo(f"  • Nodes: {Colors.CYAN}{len(tree.nodes)}{Colors.RESET}")
    click.echo(f"  • Choices: {Colors.CYAN}{sum(len(n.choices) for n in tree.nodes.values())}{Colors.RESET}")
    click.echo(f"  • Flags set: {Colors.CYAN}{len(validator.flags_set)}{Colors.RESET}")
    click.echo(f"  • Flags checked: {Colors.CYAN}{len(validator.flags_used)}{Colors.RESET}")
