import logging
import sys
from core.config import BASE_URL, DISPATCH_WORKERS, FAILURE_POLICY, LOG_LEVEL, REQUEST_TIMEOUT
from storage.kanban_api import KanbanApiClient
from services.dispatch import RequestDispatcher
from services.query_log import QueryLog
from controller.app_controller import AppController, FailurePolicy
from gui.main_window import MainWindow


def main():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    client = KanbanApiClient(BASE_URL, timeout=REQUEST_TIMEOUT)
    controller = AppController(
        client,
        dispatcher=RequestDispatcher(max_workers=DISPATCH_WORKERS),
        policy=FailurePolicy.from_str(FAILURE_POLICY),
    )
    ui = MainWindow(controller, QueryLog(BASE_URL, timeout=REQUEST_TIMEOUT))
    ui.mainloop()


if __name__ == "__main__":
    main()
