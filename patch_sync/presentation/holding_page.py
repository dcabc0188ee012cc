"""The page end users see while patch data is being prepared."""

HOLDING_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Loading - LoL Quiz</title>
  <style>
    body {
      font-family: system-ui, -apple-system, sans-serif;
      margin: 0;
      padding: 0;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      background-color: #f9fafb;
    }
    .container { text-align: center; padding: 2rem; max-width: 32rem; }
    .message { font-size: 1.125rem; color: #374151; margin-bottom: 1rem; }
    .progress-bar {
      width: 100%;
      height: 0.5rem;
      background-color: #e5e7eb;
      border-radius: 9999px;
      overflow: hidden;
    }
    .progress { height: 100%; background-color: #3b82f6; transition: width 0.3s ease; }
    .note { font-size: 0.875rem; color: #6b7280; margin-top: 0.5rem; }
  </style>
</head>
<body>
  <div class="container">
    <div class="message" id="message">Checking patch data...</div>
    <div class="progress-bar">
      <div class="progress" id="progress" style="width: 0%"></div>
    </div>
    <div class="note" id="note"></div>
  </div>
  <script>
    var READY_STATES = ["updated", "up_to_date"];
    function updateProgress() {
      fetch("/api/progress")
        .then(function (res) { return res.json(); })
        .then(function (data) {
          document.getElementById("message").textContent = data.message;
          document.getElementById("progress").style.width = data.progress + "%";
          if (data.isDownloading) {
            document.getElementById("note").textContent = "This may take a few minutes...";
          }
          if (data.state === "failed") {
            document.getElementById("note").textContent =
              "Patch data could not be prepared. Please try again later.";
            return;
          }
          if (!data.isDownloading && READY_STATES.indexOf(data.state) !== -1) {
            window.location.reload();
          } else {
            setTimeout(updateProgress, 1000);
          }
        })
        .catch(function (error) {
          console.error("Error fetching progress:", error);
          setTimeout(updateProgress, 1000);
        });
    }
    updateProgress();
  </script>
</body>
</html>
"""
