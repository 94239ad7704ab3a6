from typing import Annotated

from entwire.autowire import Inject, autowired


@autowired()
def orphan(dependency: Annotated[int, Inject("nowhere")]) -> int:
    return dependency
