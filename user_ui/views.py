from __future__ import annotations

from django.shortcuts import render
from django.http import HttpRequest, HttpResponse

from user_ui.forms import GenerateRepoForm
from user_ui.services import (
    ServiceError,
    preview_yaml,
    run_dry_run,
    run_generate,
)


def index(request: HttpRequest) -> HttpResponse:
    yaml_preview_text: str | None = None
    command_result = None
    action: str | None = None

    if request.method == "POST":
        action = (request.POST.get("action") or "").strip()
        form = GenerateRepoForm(request.POST)

        if form.is_valid():
            cleaned = form.cleaned_data

            try:
                if action == "preview_yaml":
                    yaml_preview_text = preview_yaml(cleaned)

                elif action == "dry_run":
                    command_result = run_dry_run(cleaned)

                elif action == "generate":
                    command_result = run_generate(cleaned)

                else:
                    form.add_error(None, "Unknown action")

            except ServiceError as e:
                form.add_error(None, str(e))

    else:
        form = GenerateRepoForm(initial={"timezone": "UTC"})

    context = {
        "form": form,
        "yaml_preview_text": yaml_preview_text,
        "command_result": command_result,
        "action": action,
    }
    return render(request, "user_ui/index.html", context)
