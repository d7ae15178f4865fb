import subprocess
import sys
import os
from datetime import datetime

SUMMARY_MARKER = "LOAD TEST SUMMARY"


def run_load_test():
    # 1. Prepare argument forwarding
    args = sys.argv[1:]
    # Force unbuffered output so logs appear immediately
    cmd = [sys.executable, "-u", os.path.join(os.path.dirname(os.path.abspath(__file__)), "main.py")] + args

    # 2. Create logs directory
    if not os.path.exists("logs"):
        os.makedirs("logs")

    # 3. Prepare timestamped log file (Machine-sortable)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = f"logs/loadtest_session_{timestamp}.txt"

    print("--- STARTING LOAD TEST WRAPPER ---")
    print(f"Log File: {log_filename}")
    print(f"Command:  {' '.join(cmd)}")
    print("----------------------------------\n")

    summary_found = False

    # Line-buffered so output streams live
    process = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        bufsize=1,
    )

    with open(log_filename, "w", encoding="utf-8") as f:
        f.write(f"--- Load Test Log: {timestamp} ---\n")
        f.write(f"--- Command: {' '.join(cmd)} ---\n\n")

        # stderr is merged into stdout
        for line in process.stdout:
            sys.stdout.write(line)
            sys.stdout.flush()
            f.write(line)
            f.flush()
            if SUMMARY_MARKER in line:
                summary_found = True

    process.wait()

    with open(log_filename, "a", encoding="utf-8") as f:
        f.write(f"\n--- PROCESS EXIT CODE: {process.returncode} ---\n")
        if not summary_found:
            f.write("--- SUMMARY NOT FOUND: RUN INVALID ---\n")

    if process.returncode != 0:
        print(f"\nLoad test exited with non-zero status code: {process.returncode}")
        sys.exit(process.returncode)

    if not summary_found:
        print("\n" + "!" * 40)
        print("ERROR: Load test finished without terminal summary.")
        print("!" * 40)
        sys.exit(1)

    print("\n--- WRAPPER COMPLETED SUCCESSFULLY ---")


if __name__ == "__main__":
    run_load_test()
